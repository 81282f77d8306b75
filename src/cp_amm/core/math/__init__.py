"""
Core math modules для cp-amm

Целочисленные примитивы с явным направлением округления и кривая ликвидности.
"""

# Fixed-Point Arithmetic
from cp_amm.core.math.fixed_point import (
    ONE_Q64,
    SCALE_OFFSET,
    U64_MAX,
    U128_MAX,
    U256_MAX,
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
    to_u128,
)

# Liquidity Curve
from cp_amm.core.math.curve import (
    ModifyLiquidityResult,
    get_amounts_for_liquidity,
    get_delta_amount_a_unsigned,
    get_delta_amount_b_unsigned,
    get_initialize_amounts,
    get_liquidity_for_amount_a,
    get_liquidity_for_amount_b,
    get_liquidity_for_amounts,
    validate_price_range,
    validate_sqrt_price,
)

__all__ = [
    # Fixed-Point — Constants
    "ONE_Q64",
    "SCALE_OFFSET",
    "U64_MAX",
    "U128_MAX",
    "U256_MAX",
    # Fixed-Point — Types
    "Rounding",
    # Fixed-Point — Functions
    "checked_add",
    "checked_sub",
    "mul_div",
    "mul_div_u256",
    "mul_div_wide",
    "mul_shr",
    "safe_cast",
    "shl_div",
    "to_u64",
    "to_u128",
    # Curve — Types
    "ModifyLiquidityResult",
    # Curve — Functions
    "get_amounts_for_liquidity",
    "get_delta_amount_a_unsigned",
    "get_delta_amount_b_unsigned",
    "get_initialize_amounts",
    "get_liquidity_for_amount_a",
    "get_liquidity_for_amount_b",
    "get_liquidity_for_amounts",
    "validate_price_range",
    "validate_sqrt_price",
]
