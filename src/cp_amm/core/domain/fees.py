"""
PoolFeeParameters — параметры комиссий пула

Immutable Pydantic модели. Базовая комиссия задаётся числителем
над FEE_DENOMINATOR и может снижаться по расписанию (fee scheduler).
Диапазоны типов (u8/u16/u64) проверяет pydantic; доменные правила — validate_for_pool().
"""

from enum import IntEnum

from pydantic import BaseModel, Field

from cp_amm.core.constants import BASIS_POINT_MAX, DEFAULT_LIMITS, MAX_FEE_PERCENT, ProtocolLimits
from cp_amm.core.domain.activation import ActivationType, CollectFeeMode
from cp_amm.core.errors import InvalidParameterError, PoolErrorCode
from cp_amm.core.math.fixed_point import U8_MAX, U16_MAX, U64_MAX, Rounding, mul_div


class FeeSchedulerMode(IntEnum):
    """Режим снижения базовой комиссии"""

    LINEAR = 0
    EXPONENTIAL = 1


class BaseFeeParameters(BaseModel):
    """Базовая комиссия и её расписание"""

    cliff_fee_numerator: int = Field(..., ge=0, le=U64_MAX, description="Стартовый числитель")
    number_of_period: int = Field(0, ge=0, le=U16_MAX, description="Количество периодов снижения")
    period_frequency: int = Field(0, ge=0, le=U64_MAX, description="Длина периода (слоты/сек)")
    reduction_factor: int = Field(0, ge=0, le=U64_MAX, description="Шаг снижения")
    fee_scheduler_mode: FeeSchedulerMode = Field(FeeSchedulerMode.LINEAR)

    model_config = {"frozen": True}

    def min_fee_numerator(self) -> int:
        """
        Числитель после последнего периода.

        LINEAR: cliff - n * reduction
        EXPONENTIAL: cliff * (1 - reduction / BASIS_POINT_MAX)^n, округление вниз
        """
        if self.fee_scheduler_mode == FeeSchedulerMode.LINEAR:
            return self.cliff_fee_numerator - self.number_of_period * self.reduction_factor

        if self.reduction_factor > BASIS_POINT_MAX:
            return 0
        fee = self.cliff_fee_numerator
        keep = BASIS_POINT_MAX - self.reduction_factor
        for _ in range(self.number_of_period):
            fee = mul_div(fee, keep, BASIS_POINT_MAX, Rounding.DOWN)
        return fee

    def validate_schedule(self, limits: ProtocolLimits = DEFAULT_LIMITS) -> None:
        """
        Raises:
            InvalidParameterError: INVALID_FEE
        """
        if not limits.min_fee_numerator <= self.cliff_fee_numerator <= limits.max_fee_numerator:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_FEE,
                f"cliff_fee_numerator {self.cliff_fee_numerator} outside "
                f"[{limits.min_fee_numerator}, {limits.max_fee_numerator}]",
            )

        schedule = (self.number_of_period, self.period_frequency, self.reduction_factor)
        if any(schedule) and not all(schedule):
            raise InvalidParameterError(
                PoolErrorCode.INVALID_FEE, "fee scheduler fields must be all zero or all set"
            )

        if self.min_fee_numerator() < limits.min_fee_numerator:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_FEE, "fee schedule decays below minimum fee"
            )


class PoolFeeParameters(BaseModel):
    """
    Параметры комиссий пула.

    Проценты — доли от торговой комиссии (0..100).
    """

    base_fee: BaseFeeParameters
    protocol_fee_percent: int = Field(20, ge=0, le=U8_MAX)
    partner_fee_percent: int = Field(0, ge=0, le=U8_MAX)
    referral_fee_percent: int = Field(20, ge=0, le=U8_MAX)

    model_config = {"frozen": True}

    def validate_for_pool(
        self,
        collect_fee_mode: CollectFeeMode,
        activation_type: ActivationType,
        limits: ProtocolLimits = DEFAULT_LIMITS,
    ) -> None:
        """
        Проверка комиссий для заданного режима сбора и типа активации.

        Raises:
            InvalidParameterError: INVALID_FEE, INVALID_COLLECT_FEE_MODE,
                INVALID_ACTIVATION_TYPE
        """
        CollectFeeMode.from_raw(int(collect_fee_mode))
        ActivationType.from_raw(int(activation_type))

        for name in ("protocol_fee_percent", "partner_fee_percent", "referral_fee_percent"):
            value = getattr(self, name)
            if value > MAX_FEE_PERCENT:
                raise InvalidParameterError(
                    PoolErrorCode.INVALID_FEE, f"{name} {value} exceeds {MAX_FEE_PERCENT}"
                )

        self.base_fee.validate_schedule(limits)
