"""
Fixed-Point Arithmetic — checked mul_div с явным направлением округления

Все вычисления пула и позиций идут через примитивы этого модуля.
Python int не имеет ограничения разрядности, поэтому разрядность
(u64/u128/u256) проверяется явно на входе и на выходе.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Никакой плавающей точки: только целочисленная арифметика
2. Rounding.UP округляет к +inf, Rounding.DOWN — к нулю (для беззнаковых это floor)
3. Результат вне допустимого диапазона → MathError(MATH_OVERFLOW), без насыщения
4. Деление на ноль → MathError(DIVISION_BY_ZERO)
"""

from enum import Enum
from typing import Final

from cp_amm.core.errors import MathError, PoolErrorCode

# =============================================================================
# РАЗРЯДНОСТИ
# =============================================================================

U8_MAX: Final[int] = 2**8 - 1
U16_MAX: Final[int] = 2**16 - 1
U64_MAX: Final[int] = 2**64 - 1
U128_MAX: Final[int] = 2**128 - 1
U256_MAX: Final[int] = 2**256 - 1

# Q64.64: количество дробных бит sqrt price и liquidity
SCALE_OFFSET: Final[int] = 64
ONE_Q64: Final[int] = 1 << SCALE_OFFSET


class Rounding(str, Enum):
    """Направление округления"""

    UP = "up"
    DOWN = "down"


# =============================================================================
# ПРИВЕДЕНИЕ ТИПОВ
# =============================================================================


def _check_operand(value: int, max_value: int, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise MathError(PoolErrorCode.TYPE_CAST_FAILED, f"{name} must be unsigned int, got {value!r}")
    if value > max_value:
        raise MathError(
            PoolErrorCode.TYPE_CAST_FAILED, f"{name} exceeds {max_value.bit_length()}-bit range"
        )
    return value


def safe_cast(value: int, max_value: int) -> int:
    """
    Приведение результата к беззнаковому типу заданной разрядности.

    Raises:
        MathError: MATH_OVERFLOW если value > max_value,
            TYPE_CAST_FAILED если value отрицательный
    """
    if value < 0:
        raise MathError(PoolErrorCode.TYPE_CAST_FAILED, f"negative value {value}")
    if value > max_value:
        raise MathError(
            PoolErrorCode.MATH_OVERFLOW, f"{value} does not fit {max_value.bit_length()} bits"
        )
    return value


def to_u64(value: int) -> int:
    return safe_cast(value, U64_MAX)


def to_u128(value: int) -> int:
    return safe_cast(value, U128_MAX)


def checked_add(a: int, b: int, max_value: int = U128_MAX) -> int:
    """a + b с проверкой переполнения"""
    return safe_cast(a + b, max_value)


def checked_sub(a: int, b: int) -> int:
    """a - b с проверкой underflow"""
    if b > a:
        raise MathError(PoolErrorCode.MATH_OVERFLOW, f"underflow: {a} - {b}")
    return a - b


# =============================================================================
# MUL_DIV
# =============================================================================


def _div_rounding(numerator: int, denominator: int, rounding: Rounding) -> int:
    if denominator == 0:
        raise MathError(PoolErrorCode.DIVISION_BY_ZERO)
    quotient, remainder = divmod(numerator, denominator)
    if rounding == Rounding.UP and remainder > 0:
        quotient += 1
    return quotient


def mul_div(a: int, b: int, denominator: int, rounding: Rounding) -> int:
    """
    a * b / denominator с промежуточной точностью 256 бит.

    Операнды — u128, результат должен помещаться в u128.

    Args:
        a: Множитель (u128)
        b: Множитель (u128)
        denominator: Делитель (u128, != 0)
        rounding: Rounding.UP (к +inf) или Rounding.DOWN (к нулю)

    Returns:
        Результат (u128)

    Raises:
        MathError: DIVISION_BY_ZERO, MATH_OVERFLOW, TYPE_CAST_FAILED

    Examples:
        >>> mul_div(10, 10, 3, Rounding.DOWN)
        33
        >>> mul_div(10, 10, 3, Rounding.UP)
        34
    """
    _check_operand(a, U128_MAX, "a")
    _check_operand(b, U128_MAX, "b")
    _check_operand(denominator, U128_MAX, "denominator")
    return to_u128(_div_rounding(a * b, denominator, rounding))


def mul_div_u256(a: int, b: int, denominator: int, rounding: Rounding) -> int:
    """
    a * b / denominator для u256 делителя (произведение двух sqrt price).

    Произведение a * b не должно выходить за u256; результат — u256.

    Raises:
        MathError: DIVISION_BY_ZERO, MATH_OVERFLOW, TYPE_CAST_FAILED
    """
    _check_operand(a, U128_MAX, "a")
    _check_operand(b, U128_MAX, "b")
    _check_operand(denominator, U256_MAX, "denominator")
    return safe_cast(_div_rounding(a * b, denominator, rounding), U256_MAX)


def mul_shr(a: int, b: int, offset: int, rounding: Rounding) -> int:
    """(a * b) >> offset с округлением; результат u256"""
    _check_operand(a, U128_MAX, "a")
    _check_operand(b, U128_MAX, "b")
    return safe_cast(_div_rounding(a * b, 1 << offset, rounding), U256_MAX)


def shl_div(a: int, b: int, offset: int, rounding: Rounding) -> int:
    """(a << offset) / b с округлением; результат u128"""
    _check_operand(a, U128_MAX, "a")
    _check_operand(b, U128_MAX, "b")
    return to_u128(_div_rounding(a << offset, b, rounding))


def mul_div_wide(a: int, b: int, denominator: int, rounding: Rounding) -> int:
    """
    a * b / denominator для u64 множителя на u256 произведение цен.

    Результат должен помещаться в u128.

    Raises:
        MathError: DIVISION_BY_ZERO, MATH_OVERFLOW, TYPE_CAST_FAILED
    """
    _check_operand(a, U64_MAX, "a")
    _check_operand(b, U256_MAX, "b")
    _check_operand(denominator, U256_MAX, "denominator")
    return to_u128(_div_rounding(a * b, denominator, rounding))
