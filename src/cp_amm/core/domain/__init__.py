"""
Domain models and value objects.

Contains pool, position, reward slot, fee parameters, config templates and events.
"""

from cp_amm.core.domain.activation import (
    ActivationType,
    CollectFeeMode,
    PoolType,
    max_activation_duration,
    resolve_activation_point,
)
from cp_amm.core.domain.config import (
    Config,
    ConfigType,
    create_dynamic_config,
    create_static_config,
)
from cp_amm.core.domain.events import (
    EvtAddLiquidity,
    EvtClaimProtocolFee,
    EvtCreatePosition,
    EvtFundReward,
    EvtInitializePool,
    EvtInitializeReward,
    EvtRemoveLiquidity,
    EvtUpdateRewardDuration,
    EvtUpdateRewardFunder,
    PoolEvent,
)
from cp_amm.core.domain.fees import BaseFeeParameters, FeeSchedulerMode, PoolFeeParameters
from cp_amm.core.domain.pool import Pool
from cp_amm.core.domain.position import Position
from cp_amm.core.domain.reward import RewardInfo

__all__ = [
    # Activation
    "ActivationType",
    "CollectFeeMode",
    "PoolType",
    "max_activation_duration",
    "resolve_activation_point",
    # Config
    "Config",
    "ConfigType",
    "create_dynamic_config",
    "create_static_config",
    # Fees
    "BaseFeeParameters",
    "FeeSchedulerMode",
    "PoolFeeParameters",
    # State
    "Pool",
    "Position",
    "RewardInfo",
    # Events
    "PoolEvent",
    "EvtAddLiquidity",
    "EvtClaimProtocolFee",
    "EvtCreatePosition",
    "EvtFundReward",
    "EvtInitializePool",
    "EvtInitializeReward",
    "EvtRemoveLiquidity",
    "EvtUpdateRewardDuration",
    "EvtUpdateRewardFunder",
]
