"""
Config — шаблон пула (fee tier / границы цены)

Хранение и мутация Config вне ядра. Ядро только читает Config при создании пула.
- STATIC: шаблон задаёт комиссии, границы цены, тип активации и режим сбора комиссий
- DYNAMIC: шаблон задаёт только pool_creator_authority, остальное передаёт создатель пула
"""

from enum import IntEnum
from typing import Optional

from pydantic import BaseModel, Field

from cp_amm.core.constants import DEFAULT_LIMITS, ProtocolLimits
from cp_amm.core.domain.activation import ActivationType, CollectFeeMode
from cp_amm.core.domain.fees import PoolFeeParameters
from cp_amm.core.errors import InvalidParameterError, PoolErrorCode
from cp_amm.core.math.curve import validate_price_range
from cp_amm.core.math.fixed_point import U64_MAX, U128_MAX


class ConfigType(IntEnum):
    """Тип шаблона"""

    STATIC = 0
    DYNAMIC = 1


class Config(BaseModel):
    """
    Шаблон пула.

    Для DYNAMIC поля pool_fees и границы цены не используются.
    """

    index: int = Field(..., ge=0, le=U64_MAX)
    config_type: ConfigType
    pool_creator_authority: Optional[str] = Field(
        None, description="Единственный допустимый создатель пула (None — любой)"
    )
    pool_fees: Optional[PoolFeeParameters] = None
    sqrt_min_price: int = Field(0, ge=0, le=U128_MAX)
    sqrt_max_price: int = Field(0, ge=0, le=U128_MAX)
    vault_config_key: Optional[str] = None
    activation_type: ActivationType = ActivationType.SLOT
    collect_fee_mode: CollectFeeMode = CollectFeeMode.BOTH_TOKEN

    model_config = {"frozen": True}

    @property
    def has_alpha_vault(self) -> bool:
        return self.vault_config_key is not None

    def can_create_pool(self, creator: str) -> bool:
        """Создатель разрешён шаблоном"""
        return self.pool_creator_authority is None or self.pool_creator_authority == creator


# =============================================================================
# FACTORIES
# =============================================================================


def create_static_config(
    index: int,
    pool_fees: PoolFeeParameters,
    sqrt_min_price: int,
    sqrt_max_price: int,
    activation_type: int,
    collect_fee_mode: int,
    pool_creator_authority: Optional[str] = None,
    vault_config_key: Optional[str] = None,
    limits: ProtocolLimits = DEFAULT_LIMITS,
) -> Config:
    """
    Сборка и проверка статического шаблона.

    Raises:
        InvalidParameterError: INVALID_PRICE_RANGE, INVALID_ACTIVATION_TYPE,
            INVALID_COLLECT_FEE_MODE, INVALID_FEE
    """
    validate_price_range(sqrt_min_price, sqrt_max_price, limits)
    pool_activation_type = ActivationType.from_raw(activation_type)
    pool_collect_fee_mode = CollectFeeMode.from_raw(collect_fee_mode)
    pool_fees.validate_for_pool(pool_collect_fee_mode, pool_activation_type, limits)

    return Config(
        index=index,
        config_type=ConfigType.STATIC,
        pool_creator_authority=pool_creator_authority,
        pool_fees=pool_fees,
        sqrt_min_price=sqrt_min_price,
        sqrt_max_price=sqrt_max_price,
        vault_config_key=vault_config_key,
        activation_type=pool_activation_type,
        collect_fee_mode=pool_collect_fee_mode,
    )


def create_dynamic_config(index: int, pool_creator_authority: str) -> Config:
    """
    Динамический шаблон: создатель пула обязателен.

    Raises:
        InvalidParameterError: INVALID_CONFIG_TYPE если authority не задан
    """
    if not pool_creator_authority:
        raise InvalidParameterError(
            PoolErrorCode.INVALID_CONFIG_TYPE, "dynamic config requires pool_creator_authority"
        )
    return Config(
        index=index,
        config_type=ConfigType.DYNAMIC,
        pool_creator_authority=pool_creator_authority,
    )
