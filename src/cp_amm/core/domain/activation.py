"""
Activation и режимы пула

Перечисления, хранимые в пуле как u8, и проверка точки активации.
"""

from enum import IntEnum
from typing import Optional

from cp_amm.core.constants import DEFAULT_LIMITS, ProtocolLimits
from cp_amm.core.errors import InvalidParameterError, PoolErrorCode


# =============================================================================
# ENUMS
# =============================================================================


class ActivationType(IntEnum):
    """Единица точки активации: слот или unix timestamp"""

    SLOT = 0
    TIMESTAMP = 1

    @classmethod
    def from_raw(cls, value: int) -> "ActivationType":
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_ACTIVATION_TYPE, f"unknown activation type {value}"
            ) from None


class CollectFeeMode(IntEnum):
    """В каком токене пул собирает торговые комиссии"""

    BOTH_TOKEN = 0
    ONLY_B = 1

    @classmethod
    def from_raw(cls, value: int) -> "CollectFeeMode":
        try:
            return cls(value)
        except ValueError:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_COLLECT_FEE_MODE, f"unknown collect fee mode {value}"
            ) from None


class PoolType(IntEnum):
    """Происхождение пула"""

    PERMISSIONLESS = 0
    CUSTOMIZABLE = 1


# =============================================================================
# ACTIVATION POINT
# =============================================================================


def max_activation_duration(
    activation_type: ActivationType, limits: ProtocolLimits = DEFAULT_LIMITS
) -> int:
    if activation_type == ActivationType.SLOT:
        return limits.max_activation_slot_duration
    return limits.max_activation_duration


def resolve_activation_point(
    activation_type: ActivationType,
    activation_point: Optional[int],
    current_point: int,
    has_alpha_vault: bool = False,
    limits: ProtocolLimits = DEFAULT_LIMITS,
) -> int:
    """
    Итоговая точка активации пула.

    Без явной точки пул активируется сразу (current_point).
    Явная точка должна лежать в [current_point, current_point + max_duration].
    Alpha vault требует явной точки активации.

    Raises:
        InvalidParameterError: INVALID_ACTIVATION_POINT
    """
    if activation_point is None:
        if has_alpha_vault:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_ACTIVATION_POINT, "alpha vault requires activation point"
            )
        return current_point

    upper = current_point + max_activation_duration(activation_type, limits)
    if not current_point <= activation_point <= upper:
        raise InvalidParameterError(
            PoolErrorCode.INVALID_ACTIVATION_POINT,
            f"activation point {activation_point} outside [{current_point}, {upper}]",
        )
    return activation_point
