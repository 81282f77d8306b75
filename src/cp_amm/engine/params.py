"""
Параметры создания пула

Immutable Pydantic модели. Диапазоны типов проверяются pydantic,
доменные правила (диапазон цены, комиссии, активация) — движком.
"""

from typing import Optional

from pydantic import BaseModel, Field

from cp_amm.core.domain.fees import PoolFeeParameters
from cp_amm.core.math.fixed_point import U8_MAX, U64_MAX, U128_MAX


class InitializePoolParameters(BaseModel):
    """Создание пула по статическому шаблону"""

    pool_id: str = Field(..., min_length=1)
    creator: str = Field(..., min_length=1, description="Владелец первой позиции")
    payer: str = Field(..., min_length=1, description="Кто вносит начальные суммы")
    token_a_mint: str = Field(..., min_length=1)
    token_b_mint: str = Field(..., min_length=1)
    token_a_vault: str = Field(..., min_length=1)
    token_b_vault: str = Field(..., min_length=1)
    position_id: str = Field(..., min_length=1)
    position_nft_mint: str = Field(..., min_length=1)
    liquidity: int = Field(..., gt=0, le=U128_MAX)
    sqrt_price: int = Field(..., gt=0, le=U128_MAX)
    activation_point: Optional[int] = Field(None, ge=0, le=U64_MAX)
    token_a_flag: int = Field(0, ge=0, le=U8_MAX)
    token_b_flag: int = Field(0, ge=0, le=U8_MAX)

    model_config = {"frozen": True}


class InitializeCustomizablePoolParameters(InitializePoolParameters):
    """
    Создание пула по динамическому шаблону.

    activation_type и collect_fee_mode — сырые u8, декодируются движком.
    """

    pool_fees: PoolFeeParameters
    sqrt_min_price: int = Field(..., gt=0, le=U128_MAX)
    sqrt_max_price: int = Field(..., gt=0, le=U128_MAX)
    activation_type: int = Field(0, ge=0, le=U8_MAX)
    collect_fee_mode: int = Field(0, ge=0, le=U8_MAX)
    has_alpha_vault: bool = False
