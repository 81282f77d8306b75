"""
Liquidity Curve — конверсия ликвидность ↔ суммы активов

Чистые функции для concentrated constant-product кривой в ограниченном
диапазоне [sqrt_min_price, sqrt_max_price]. Sqrt price — Q64.64,
ликвидность — u128 с 64 дробными битами.

Формулы:
    amount_a = L * (√P_upper - √P_lower) / (√P_lower * √P_upper)
    amount_b = L * (√P_upper - √P_lower) / 2^128

Правило округления (anti-drain):
    - добавление ликвидности → Rounding.UP (провайдер платит не меньше, чем нужно)
    - удаление ликвидности → Rounding.DOWN (провайдер не выводит больше, чем ему положено)
Для одинаковых delta и цены UP-сумма всегда >= DOWN-суммы.
"""

from typing import NamedTuple

from cp_amm.core.constants import DEFAULT_LIMITS, ProtocolLimits
from cp_amm.core.errors import InvalidParameterError, MathError, PoolErrorCode
from cp_amm.core.math.fixed_point import (
    SCALE_OFFSET,
    Rounding,
    mul_div_u256,
    mul_div_wide,
    mul_shr,
    shl_div,
    to_u64,
)


class ModifyLiquidityResult(NamedTuple):
    """Суммы токенов для изменения ликвидности"""

    token_a_amount: int
    token_b_amount: int


# =============================================================================
# ВАЛИДАЦИЯ ДИАПАЗОНА
# =============================================================================


def validate_price_range(
    sqrt_min_price: int,
    sqrt_max_price: int,
    limits: ProtocolLimits = DEFAULT_LIMITS,
) -> None:
    """
    Проверка неизменяемых границ цены пула.

    Raises:
        InvalidParameterError: INVALID_PRICE_RANGE если sqrt_min >= sqrt_max
            или любая граница вне [MIN_SQRT_PRICE, MAX_SQRT_PRICE]
    """
    if sqrt_min_price < limits.min_sqrt_price or sqrt_max_price > limits.max_sqrt_price:
        raise InvalidParameterError(
            PoolErrorCode.INVALID_PRICE_RANGE,
            f"bounds [{sqrt_min_price}, {sqrt_max_price}] outside "
            f"[{limits.min_sqrt_price}, {limits.max_sqrt_price}]",
        )
    if sqrt_min_price >= sqrt_max_price:
        raise InvalidParameterError(
            PoolErrorCode.INVALID_PRICE_RANGE,
            f"sqrt_min_price {sqrt_min_price} >= sqrt_max_price {sqrt_max_price}",
        )


def validate_sqrt_price(sqrt_price: int, sqrt_min_price: int, sqrt_max_price: int) -> None:
    """sqrt_min_price <= sqrt_price <= sqrt_max_price"""
    if not sqrt_min_price <= sqrt_price <= sqrt_max_price:
        raise InvalidParameterError(
            PoolErrorCode.PRICE_RANGE_VIOLATION,
            f"sqrt_price {sqrt_price} outside [{sqrt_min_price}, {sqrt_max_price}]",
        )


# =============================================================================
# DELTA AMOUNTS
# =============================================================================


def get_delta_amount_a_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """
    Сумма токена A между двумя sqrt price.

    Δa = L * (√P_upper - √P_lower) / (√P_lower * √P_upper)

    Args:
        lower_sqrt_price: Нижняя sqrt price (Q64.64)
        upper_sqrt_price: Верхняя sqrt price (Q64.64)
        liquidity: Ликвидность (u128)
        rounding: Направление округления

    Returns:
        Сумма токена A (u64)

    Raises:
        MathError: MATH_OVERFLOW если результат не помещается в u64
    """
    if lower_sqrt_price > upper_sqrt_price:
        raise MathError(PoolErrorCode.MATH_OVERFLOW, "lower sqrt price above upper")
    denominator = lower_sqrt_price * upper_sqrt_price
    result = mul_div_u256(liquidity, upper_sqrt_price - lower_sqrt_price, denominator, rounding)
    return to_u64(result)


def get_delta_amount_b_unsigned(
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> int:
    """
    Сумма токена B между двумя sqrt price.

    Δb = L * (√P_upper - √P_lower) / 2^128

    Returns:
        Сумма токена B (u64)

    Raises:
        MathError: MATH_OVERFLOW если результат не помещается в u64
    """
    if lower_sqrt_price > upper_sqrt_price:
        raise MathError(PoolErrorCode.MATH_OVERFLOW, "lower sqrt price above upper")
    result = mul_shr(liquidity, upper_sqrt_price - lower_sqrt_price, SCALE_OFFSET * 2, rounding)
    return to_u64(result)


# =============================================================================
# CURVE API
# =============================================================================


def get_amounts_for_liquidity(
    sqrt_min_price: int,
    sqrt_max_price: int,
    sqrt_price: int,
    liquidity: int,
    rounding: Rounding,
) -> ModifyLiquidityResult:
    """
    Суммы A и B, обеспечивающие `liquidity` при текущей цене.

    Токен A покрывает отрезок [sqrt_price, sqrt_max_price],
    токен B — отрезок [sqrt_min_price, sqrt_price].
    """
    token_a_amount = get_delta_amount_a_unsigned(sqrt_price, sqrt_max_price, liquidity, rounding)
    token_b_amount = get_delta_amount_b_unsigned(sqrt_min_price, sqrt_price, liquidity, rounding)
    return ModifyLiquidityResult(token_a_amount, token_b_amount)


def get_initialize_amounts(
    sqrt_min_price: int,
    sqrt_max_price: int,
    sqrt_price: int,
    liquidity: int,
    limits: ProtocolLimits = DEFAULT_LIMITS,
) -> tuple[int, int]:
    """
    Точные суммы для создания пула с начальной ликвидностью.

    Округление всегда вверх: создатель пула обеспечивает ликвидность полностью.

    Args:
        sqrt_min_price: Нижняя граница (неизменяемая)
        sqrt_max_price: Верхняя граница (неизменяемая)
        sqrt_price: Стартовая цена
        liquidity: Запрошенная ликвидность

    Returns:
        (token_a_amount, token_b_amount)

    Raises:
        InvalidParameterError: INVALID_PRICE_RANGE, PRICE_RANGE_VIOLATION
        MathError: MATH_OVERFLOW
    """
    validate_price_range(sqrt_min_price, sqrt_max_price, limits)
    validate_sqrt_price(sqrt_price, sqrt_min_price, sqrt_max_price)
    result = get_amounts_for_liquidity(
        sqrt_min_price, sqrt_max_price, sqrt_price, liquidity, Rounding.UP
    )
    return result.token_a_amount, result.token_b_amount


# =============================================================================
# LIQUIDITY FROM AMOUNTS
# =============================================================================


def get_liquidity_for_amount_a(sqrt_price: int, sqrt_max_price: int, amount_a: int) -> int:
    """
    Максимальная ликвидность, которую покрывает amount_a (округление вниз).

    L = Δa * √P * √P_max / (√P_max - √P)
    """
    if sqrt_price >= sqrt_max_price:
        return 0
    price_product = mul_shr(sqrt_price, sqrt_max_price, 0, Rounding.DOWN)
    return mul_div_wide(amount_a, price_product, sqrt_max_price - sqrt_price, Rounding.DOWN)


def get_liquidity_for_amount_b(sqrt_min_price: int, sqrt_price: int, amount_b: int) -> int:
    """
    Максимальная ликвидность, которую покрывает amount_b (округление вниз).

    L = (Δb << 128) / (√P - √P_min)
    """
    if sqrt_price <= sqrt_min_price:
        return 0
    return shl_div(amount_b, sqrt_price - sqrt_min_price, SCALE_OFFSET * 2, Rounding.DOWN)


def get_liquidity_for_amounts(
    sqrt_min_price: int,
    sqrt_max_price: int,
    sqrt_price: int,
    amount_a: int,
    amount_b: int,
) -> int:
    """
    Ликвидность, покрываемая обеими суммами (минимум из двух ограничений).

    На границе диапазона одна из сумм не участвует.
    """
    if sqrt_price <= sqrt_min_price:
        return get_liquidity_for_amount_a(sqrt_price, sqrt_max_price, amount_a)
    if sqrt_price >= sqrt_max_price:
        return get_liquidity_for_amount_b(sqrt_min_price, sqrt_price, amount_b)
    return min(
        get_liquidity_for_amount_a(sqrt_price, sqrt_max_price, amount_a),
        get_liquidity_for_amount_b(sqrt_min_price, sqrt_price, amount_b),
    )
