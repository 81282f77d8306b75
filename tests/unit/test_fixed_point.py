"""Тесты для fixed-point арифметики.

Coverage:
- mul_div с округлением UP/DOWN
- Широкий промежуточный результат (256 бит)
- DivisionByZero / MathOverflow / TypeCastFailed
- mul_shr / shl_div
- Приведение типов
"""

import pytest

from cp_amm.core.errors import MathError, PoolErrorCode
from cp_amm.core.math.fixed_point import (
    ONE_Q64,
    U64_MAX,
    U128_MAX,
    Rounding,
    checked_add,
    checked_sub,
    mul_div,
    mul_div_u256,
    mul_div_wide,
    mul_shr,
    safe_cast,
    shl_div,
    to_u64,
)


class TestMulDiv:
    """Тесты mul_div."""

    def test_rounding_down_truncates(self):
        """10 * 10 / 3 = 33.33 → 33."""
        assert mul_div(10, 10, 3, Rounding.DOWN) == 33

    def test_rounding_up_ceils(self):
        """10 * 10 / 3 = 33.33 → 34."""
        assert mul_div(10, 10, 3, Rounding.UP) == 34

    def test_exact_division_same_for_both_roundings(self):
        assert mul_div(6, 7, 2, Rounding.UP) == 21
        assert mul_div(6, 7, 2, Rounding.DOWN) == 21

    def test_wide_intermediate(self):
        """U128_MAX * U128_MAX не помещается в 128 бит, но результат помещается."""
        assert mul_div(U128_MAX, U128_MAX, U128_MAX, Rounding.DOWN) == U128_MAX
        assert mul_div(U128_MAX, ONE_Q64, ONE_Q64, Rounding.UP) == U128_MAX

    def test_division_by_zero(self):
        with pytest.raises(MathError) as exc_info:
            mul_div(1, 1, 0, Rounding.DOWN)
        assert exc_info.value.code == PoolErrorCode.DIVISION_BY_ZERO

    def test_result_overflow(self):
        with pytest.raises(MathError) as exc_info:
            mul_div(U128_MAX, 2, 1, Rounding.DOWN)
        assert exc_info.value.code == PoolErrorCode.MATH_OVERFLOW

    @pytest.mark.parametrize("operand", [-1, U128_MAX + 1, True])
    def test_invalid_operand(self, operand):
        with pytest.raises(MathError) as exc_info:
            mul_div(operand, 1, 1, Rounding.DOWN)
        assert exc_info.value.code == PoolErrorCode.TYPE_CAST_FAILED

    @pytest.mark.parametrize(
        "a,b,denominator",
        [
            (1, 1, 3),
            (7, 13, 5),
            (U64_MAX, U64_MAX, 97),
            (ONE_Q64, 3, 7),
            (U128_MAX, 1, 2),
        ],
    )
    def test_up_minus_down_at_most_one(self, a, b, denominator):
        up = mul_div(a, b, denominator, Rounding.UP)
        down = mul_div(a, b, denominator, Rounding.DOWN)
        assert 0 <= up - down <= 1

    def test_u256_denominator(self):
        """Делитель — произведение двух sqrt price (до 256 бит)."""
        denominator = U128_MAX * 4
        assert mul_div_u256(U128_MAX, 8, denominator, Rounding.DOWN) == 2
        assert mul_div_u256(U128_MAX, 9, denominator, Rounding.UP) == 3

    def test_wide_multiplier(self):
        """u64 сумма на u256 произведение цен."""
        price_product = 8 * ONE_Q64 * ONE_Q64
        assert mul_div_wide(250_000, price_product, 2 * ONE_Q64, Rounding.DOWN) == 10**6 * ONE_Q64
        assert mul_div_wide(1, 10, 3, Rounding.UP) == 4

    def test_wide_rejects_negative_amount(self):
        with pytest.raises(MathError) as exc_info:
            mul_div_wide(-1, ONE_Q64, 1, Rounding.DOWN)
        assert exc_info.value.code == PoolErrorCode.TYPE_CAST_FAILED


class TestShifts:
    """Тесты mul_shr / shl_div."""

    def test_mul_shr_rounding(self):
        """3 >> 1 = 1.5."""
        assert mul_shr(3, 1, 1, Rounding.DOWN) == 1
        assert mul_shr(3, 1, 1, Rounding.UP) == 2

    def test_mul_shr_q64(self):
        """Q64.64 умножение: 2.0 * 3.0 = 6.0."""
        assert mul_shr(2 * ONE_Q64, 3 * ONE_Q64, 64, Rounding.DOWN) == 6 * ONE_Q64

    def test_shl_div_rounding(self):
        down = shl_div(1, 3, 64, Rounding.DOWN)
        up = shl_div(1, 3, 64, Rounding.UP)
        assert down == ONE_Q64 // 3
        assert up == down + 1

    def test_shl_div_by_zero(self):
        with pytest.raises(MathError) as exc_info:
            shl_div(1, 0, 64, Rounding.DOWN)
        assert exc_info.value.code == PoolErrorCode.DIVISION_BY_ZERO


class TestCasts:
    """Тесты приведения и checked-операций."""

    def test_safe_cast_within_range(self):
        assert safe_cast(U64_MAX, U64_MAX) == U64_MAX

    def test_to_u64_overflow(self):
        with pytest.raises(MathError) as exc_info:
            to_u64(U64_MAX + 1)
        assert exc_info.value.code == PoolErrorCode.MATH_OVERFLOW

    def test_negative_cast(self):
        with pytest.raises(MathError) as exc_info:
            safe_cast(-5, U64_MAX)
        assert exc_info.value.code == PoolErrorCode.TYPE_CAST_FAILED

    def test_checked_add_overflow(self):
        with pytest.raises(MathError):
            checked_add(U128_MAX, 1)
        assert checked_add(U64_MAX - 1, 1, U64_MAX) == U64_MAX

    def test_checked_sub_underflow(self):
        with pytest.raises(MathError) as exc_info:
            checked_sub(1, 2)
        assert exc_info.value.code == PoolErrorCode.MATH_OVERFLOW
        assert checked_sub(5, 5) == 0
