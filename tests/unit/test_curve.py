"""Тесты для кривой ликвидности.

Coverage:
- Формулы amount_a / amount_b на точных значениях
- Валидация диапазона цены
- Граничные цены (весь диапазон в одном токене)
- Rounding.UP >= Rounding.DOWN
- Переполнение u64
- Ликвидность из сумм
"""

import pytest

from cp_amm.core.constants import LIQUIDITY_MAX, MAX_SQRT_PRICE, MIN_SQRT_PRICE
from cp_amm.core.errors import InvalidParameterError, MathError, PoolErrorCode
from cp_amm.core.math.curve import (
    get_amounts_for_liquidity,
    get_initialize_amounts,
    get_liquidity_for_amounts,
    validate_price_range,
)
from cp_amm.core.math.fixed_point import ONE_Q64, U128_MAX, Rounding


# Цены 1..16, текущая 4 (sqrt: 1..4, текущая 2)
SQRT_MIN = ONE_Q64
SQRT_MAX = 4 * ONE_Q64
SQRT_PRICE = 2 * ONE_Q64
LIQUIDITY = 10**6 * ONE_Q64


class TestPriceRange:
    """Тесты validate_price_range."""

    def test_valid_full_range(self):
        validate_price_range(MIN_SQRT_PRICE, MAX_SQRT_PRICE)

    @pytest.mark.parametrize(
        "sqrt_min,sqrt_max",
        [
            (ONE_Q64, ONE_Q64),
            (2 * ONE_Q64, ONE_Q64),
            (MIN_SQRT_PRICE - 1, ONE_Q64),
            (ONE_Q64, MAX_SQRT_PRICE + 1),
            (MAX_SQRT_PRICE + 1, MAX_SQRT_PRICE + 2),
        ],
    )
    def test_invalid_range(self, sqrt_min, sqrt_max):
        with pytest.raises(InvalidParameterError) as exc_info:
            validate_price_range(sqrt_min, sqrt_max)
        assert exc_info.value.code == PoolErrorCode.INVALID_PRICE_RANGE


class TestInitializeAmounts:
    """Тесты get_initialize_amounts."""

    def test_exact_amounts(self):
        """
        amount_a = L * (4 - 2) / (2 * 4) = 10^6 / 4
        amount_b = L * (2 - 1) = 10^6
        """
        amount_a, amount_b = get_initialize_amounts(SQRT_MIN, SQRT_MAX, SQRT_PRICE, LIQUIDITY)
        assert amount_a == 250_000
        assert amount_b == 1_000_000

    def test_price_at_lower_bound_only_token_a(self):
        amount_a, amount_b = get_initialize_amounts(SQRT_MIN, SQRT_MAX, SQRT_MIN, LIQUIDITY)
        assert amount_a > 0
        assert amount_b == 0

    def test_price_at_upper_bound_only_token_b(self):
        amount_a, amount_b = get_initialize_amounts(SQRT_MIN, SQRT_MAX, SQRT_MAX, LIQUIDITY)
        assert amount_a == 0
        assert amount_b > 0

    def test_price_outside_range(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            get_initialize_amounts(SQRT_MIN, SQRT_MAX, SQRT_MAX + 1, LIQUIDITY)
        assert exc_info.value.code == PoolErrorCode.PRICE_RANGE_VIOLATION

    def test_invalid_bounds(self):
        with pytest.raises(InvalidParameterError) as exc_info:
            get_initialize_amounts(SQRT_MAX, SQRT_MIN, SQRT_PRICE, LIQUIDITY)
        assert exc_info.value.code == PoolErrorCode.INVALID_PRICE_RANGE

    def test_rounds_up(self):
        """1 единица ликвидности на половине диапазона → 0.5 токена → 1."""
        amount_a, _ = get_initialize_amounts(ONE_Q64, 2 * ONE_Q64, ONE_Q64, ONE_Q64)
        assert amount_a == 1

    def test_amount_overflow(self):
        with pytest.raises(MathError) as exc_info:
            get_initialize_amounts(MIN_SQRT_PRICE, MAX_SQRT_PRICE, MIN_SQRT_PRICE, U128_MAX)
        assert exc_info.value.code == PoolErrorCode.MATH_OVERFLOW

    @pytest.mark.parametrize("sqrt_price", [MIN_SQRT_PRICE, MAX_SQRT_PRICE])
    def test_liquidity_max_fits_u64(self, sqrt_price):
        """LIQUIDITY_MAX на полном диапазоне не переполняет u64."""
        get_initialize_amounts(MIN_SQRT_PRICE, MAX_SQRT_PRICE, sqrt_price, LIQUIDITY_MAX)


class TestRoundingAsymmetry:
    """UP-сумма всегда >= DOWN-суммы."""

    @pytest.mark.parametrize(
        "sqrt_price",
        [MIN_SQRT_PRICE, MIN_SQRT_PRICE + 1, ONE_Q64, 3 * ONE_Q64 + 7, MAX_SQRT_PRICE - 1, MAX_SQRT_PRICE],
    )
    @pytest.mark.parametrize("liquidity", [1, 3, 10**9 + 7, ONE_Q64 + 1, LIQUIDITY_MAX])
    def test_up_not_less_than_down(self, sqrt_price, liquidity):
        up = get_amounts_for_liquidity(
            MIN_SQRT_PRICE, MAX_SQRT_PRICE, sqrt_price, liquidity, Rounding.UP
        )
        down = get_amounts_for_liquidity(
            MIN_SQRT_PRICE, MAX_SQRT_PRICE, sqrt_price, liquidity, Rounding.DOWN
        )
        assert up.token_a_amount >= down.token_a_amount
        assert up.token_b_amount >= down.token_b_amount
        assert up.token_a_amount - down.token_a_amount <= 1
        assert up.token_b_amount - down.token_b_amount <= 1


class TestLiquidityForAmounts:
    """Тесты get_liquidity_for_amounts."""

    def test_inverse_of_exact_amounts(self):
        liquidity = get_liquidity_for_amounts(SQRT_MIN, SQRT_MAX, SQRT_PRICE, 250_000, 1_000_000)
        assert liquidity == LIQUIDITY

    def test_limited_by_smaller_side(self):
        liquidity = get_liquidity_for_amounts(SQRT_MIN, SQRT_MAX, SQRT_PRICE, 250_000, 500_000)
        assert liquidity == LIQUIDITY // 2

    def test_amounts_down_never_exceed_inputs(self):
        amount_a, amount_b = 123_456, 789_012
        liquidity = get_liquidity_for_amounts(SQRT_MIN, SQRT_MAX, SQRT_PRICE + 12345, amount_a, amount_b)
        result = get_amounts_for_liquidity(
            SQRT_MIN, SQRT_MAX, SQRT_PRICE + 12345, liquidity, Rounding.DOWN
        )
        assert result.token_a_amount <= amount_a
        assert result.token_b_amount <= amount_b

    def test_boundary_price_uses_single_side(self):
        liquidity = get_liquidity_for_amounts(SQRT_MIN, SQRT_MAX, SQRT_MIN, 250_000, 0)
        assert liquidity > 0

    def test_negative_amount_rejected(self):
        with pytest.raises(MathError) as exc_info:
            get_liquidity_for_amounts(SQRT_MIN, SQRT_MAX, SQRT_PRICE, 250_000, -1)
        assert exc_info.value.code == PoolErrorCode.TYPE_CAST_FAILED
