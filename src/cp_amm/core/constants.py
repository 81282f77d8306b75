"""
Protocol constants — параметры развёртывания

Точные значения — параметры развёртывания, а не часть алгоритмического контракта.
Все проверки границ ссылаются на них символически: через ProtocolLimits,
дефолты которого берутся из констант ниже.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# SQRT PRICE (Q64.64)
# =============================================================================

MIN_SQRT_PRICE: Final[int] = 4_295_048_016
MAX_SQRT_PRICE: Final[int] = 79_226_673_521_066_979_257_578_248_091

# Максимальная ликвидность, при которой суммы полного диапазона помещаются в u64
LIQUIDITY_MAX: Final[int] = 34_028_236_692_093_846_346_337_460_743

# =============================================================================
# REWARDS
# =============================================================================

NUM_REWARDS: Final[int] = 2
MIN_REWARD_DURATION: Final[int] = 24 * 60 * 60  # 1 день
MAX_REWARD_DURATION: Final[int] = 365 * 24 * 60 * 60  # 1 год

# =============================================================================
# FEES
# =============================================================================

FEE_DENOMINATOR: Final[int] = 1_000_000_000
BASIS_POINT_MAX: Final[int] = 10_000
MIN_FEE_BPS: Final[int] = 1
MAX_FEE_BPS: Final[int] = 5_000
MIN_FEE_NUMERATOR: Final[int] = MIN_FEE_BPS * FEE_DENOMINATOR // BASIS_POINT_MAX
MAX_FEE_NUMERATOR: Final[int] = MAX_FEE_BPS * FEE_DENOMINATOR // BASIS_POINT_MAX
MAX_FEE_PERCENT: Final[int] = 100

# =============================================================================
# ACTIVATION
# =============================================================================

# 31 день в слотах (400ms) и в секундах
MAX_ACTIVATION_SLOT_DURATION: Final[int] = 31 * 24 * 60 * 60 * 1000 // 400
MAX_ACTIVATION_DURATION: Final[int] = 31 * 24 * 60 * 60


@dataclass(frozen=True)
class ProtocolLimits:
    """
    Границы, которые проверяет ядро.

    Frozen-конфигурация: один экземпляр на развёртывание, передаётся явно.
    """

    min_sqrt_price: int = MIN_SQRT_PRICE
    max_sqrt_price: int = MAX_SQRT_PRICE
    num_rewards: int = NUM_REWARDS
    min_reward_duration: int = MIN_REWARD_DURATION
    max_reward_duration: int = MAX_REWARD_DURATION
    min_fee_numerator: int = MIN_FEE_NUMERATOR
    max_fee_numerator: int = MAX_FEE_NUMERATOR
    max_activation_slot_duration: int = MAX_ACTIVATION_SLOT_DURATION
    max_activation_duration: int = MAX_ACTIVATION_DURATION

    def is_valid_reward_duration(self, duration: int) -> bool:
        return self.min_reward_duration <= duration <= self.max_reward_duration

    def is_valid_reward_index(self, reward_index: int) -> bool:
        return 0 <= reward_index < self.num_rewards


DEFAULT_LIMITS: Final[ProtocolLimits] = ProtocolLimits()
