"""
Events — структурированные записи для коллаборатора уведомлений

Immutable Pydantic модели. Набор полей каждого события фиксирован
и дополнительно проверяется JSON Schema контрактом (cp_amm.core.contracts).
"""

from typing import ClassVar, Optional

from pydantic import BaseModel

from cp_amm.core.domain.fees import PoolFeeParameters


class PoolEvent(BaseModel):
    """Базовое событие. event_name совпадает с именем JSON Schema"""

    event_name: ClassVar[str] = ""

    model_config = {"frozen": True}


class EvtInitializePool(PoolEvent):
    event_name: ClassVar[str] = "evt_initialize_pool"

    pool: str
    token_a_mint: str
    token_b_mint: str
    creator: str
    payer: str
    alpha_vault: Optional[str]
    pool_fees: PoolFeeParameters
    sqrt_min_price: int
    sqrt_max_price: int
    activation_type: int
    collect_fee_mode: int
    liquidity: int
    sqrt_price: int
    activation_point: int
    token_a_flag: int
    token_b_flag: int
    token_a_amount: int
    token_b_amount: int
    total_amount_a: int
    total_amount_b: int
    pool_type: int


class EvtCreatePosition(PoolEvent):
    event_name: ClassVar[str] = "evt_create_position"

    pool: str
    owner: str
    position: str
    position_nft_mint: str


class EvtClaimProtocolFee(PoolEvent):
    event_name: ClassVar[str] = "evt_claim_protocol_fee"

    pool: str
    token_a_amount: int
    token_b_amount: int


class EvtInitializeReward(PoolEvent):
    event_name: ClassVar[str] = "evt_initialize_reward"

    pool: str
    reward_mint: str
    funder: str
    creator: str
    reward_index: int
    reward_duration: int


class EvtUpdateRewardDuration(PoolEvent):
    event_name: ClassVar[str] = "evt_update_reward_duration"

    pool: str
    reward_index: int
    old_reward_duration: int
    new_reward_duration: int


class EvtUpdateRewardFunder(PoolEvent):
    event_name: ClassVar[str] = "evt_update_reward_funder"

    pool: str
    reward_index: int
    old_funder: str
    new_funder: str


class EvtFundReward(PoolEvent):
    event_name: ClassVar[str] = "evt_fund_reward"

    pool: str
    funder: str
    mint_reward: str
    reward_index: int
    amount: int
    transfer_fee_excluded_amount_in: int
    reward_duration_end: int
    pre_reward_rate: int
    post_reward_rate: int


class EvtModifyLiquidity(PoolEvent):
    """Общий набор полей add/remove liquidity"""

    pool: str
    position: str
    owner: str
    liquidity_delta: int
    token_a_amount_threshold: int
    token_b_amount_threshold: int
    token_a_amount: int
    token_b_amount: int
    total_amount_a: int
    total_amount_b: int


class EvtAddLiquidity(EvtModifyLiquidity):
    event_name: ClassVar[str] = "evt_add_liquidity"


class EvtRemoveLiquidity(EvtModifyLiquidity):
    event_name: ClassVar[str] = "evt_remove_liquidity"
