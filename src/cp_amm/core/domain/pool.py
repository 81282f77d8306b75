"""
Pool — состояние пула одной торговой пары

Immutable Pydantic модель. Каждая операция пула возвращает новые экземпляры
Pool/Position, поэтому неуспешная операция не оставляет частичных изменений:
вызывающий коммитит новые экземпляры только после последнего шага, который может упасть.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. sqrt_min_price <= sqrt_price <= sqrt_max_price
2. liquidity == Σ position.unlocked_liquidity по всем позициям пула
3. protocol_fee_* уменьшается только через claim и никогда не уходит ниже нуля
4. Добавление ликвидности считается с Rounding.UP, удаление — с Rounding.DOWN
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from cp_amm.core.constants import NUM_REWARDS
from cp_amm.core.domain.activation import ActivationType, CollectFeeMode, PoolType
from cp_amm.core.domain.fees import PoolFeeParameters
from cp_amm.core.domain.position import Position
from cp_amm.core.domain.reward import RewardInfo
from cp_amm.core.errors import InvalidParameterError, PoolErrorCode, StateMismatchError
from cp_amm.core.math.curve import ModifyLiquidityResult, get_amounts_for_liquidity
from cp_amm.core.math.fixed_point import (
    U8_MAX,
    U64_MAX,
    U128_MAX,
    Rounding,
    checked_add,
    checked_sub,
)


def _default_reward_infos() -> tuple[RewardInfo, ...]:
    return tuple(RewardInfo() for _ in range(NUM_REWARDS))


class Pool(BaseModel):
    """
    Состояние пула.

    Конфигурация (комиссии, границы, активация) фиксируется при создании;
    ликвидность, цена, протокольные комиссии и reward-слоты меняются операциями.
    """

    # Идентификация
    pool_id: str = Field(..., min_length=1, description="Идентификатор пула")
    creator: str = Field(..., min_length=1, description="Создатель пула")
    token_a_mint: str = Field(..., min_length=1)
    token_b_mint: str = Field(..., min_length=1)
    token_a_vault: str = Field(..., min_length=1)
    token_b_vault: str = Field(..., min_length=1)
    alpha_vault: Optional[str] = Field(None, description="Whitelisted alpha vault")
    partner: Optional[str] = Field(None, description="Partner (pool creator authority)")

    # Конфигурация
    pool_fees: PoolFeeParameters
    activation_point: int = Field(0, ge=0, le=U64_MAX)
    activation_type: ActivationType = ActivationType.SLOT
    collect_fee_mode: CollectFeeMode = CollectFeeMode.BOTH_TOKEN
    pool_type: PoolType = PoolType.PERMISSIONLESS
    token_a_flag: int = Field(0, ge=0, le=U8_MAX)
    token_b_flag: int = Field(0, ge=0, le=U8_MAX)

    # Кривая
    sqrt_min_price: int = Field(..., gt=0, le=U128_MAX)
    sqrt_max_price: int = Field(..., gt=0, le=U128_MAX)
    sqrt_price: int = Field(..., gt=0, le=U128_MAX)
    liquidity: int = Field(0, ge=0, le=U128_MAX)

    # Накопленные протокольные комиссии
    protocol_fee_a: int = Field(0, ge=0, le=U64_MAX)
    protocol_fee_b: int = Field(0, ge=0, le=U64_MAX)

    # Reward-слоты
    reward_infos: tuple[RewardInfo, ...] = Field(default_factory=_default_reward_infos)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_price_bounds(self) -> "Pool":
        if not self.sqrt_min_price <= self.sqrt_price <= self.sqrt_max_price:
            raise ValueError(
                f"sqrt_price {self.sqrt_price} outside "
                f"[{self.sqrt_min_price}, {self.sqrt_max_price}]"
            )
        if not self.reward_infos:
            raise ValueError("pool requires at least one reward slot")
        return self

    # =========================================================================
    # CURVE
    # =========================================================================

    def get_amounts_for_modify_liquidity(
        self, liquidity_delta: int, rounding: Rounding
    ) -> ModifyLiquidityResult:
        """
        Суммы токенов для изменения ликвидности при текущей цене.

        Добавление — Rounding.UP, удаление — Rounding.DOWN.
        """
        return get_amounts_for_liquidity(
            self.sqrt_min_price,
            self.sqrt_max_price,
            self.sqrt_price,
            liquidity_delta,
            rounding,
        )

    # =========================================================================
    # LIQUIDITY
    # =========================================================================

    def _check_position(self, position: Position) -> None:
        if position.pool != self.pool_id:
            raise StateMismatchError(
                PoolErrorCode.POOL_MISMATCH,
                f"position {position.position_id} belongs to {position.pool}",
            )

    def apply_add_liquidity(
        self, position: Position, liquidity_delta: int
    ) -> tuple["Pool", Position]:
        """
        Добавление ликвидности в пул и позицию.

        Returns:
            (новый Pool, новая Position)

        Raises:
            InvalidParameterError: AMOUNT_IS_ZERO если liquidity_delta == 0
            StateMismatchError: POOL_MISMATCH
            MathError: MATH_OVERFLOW
        """
        if liquidity_delta <= 0:
            raise InvalidParameterError(PoolErrorCode.AMOUNT_IS_ZERO, "liquidity_delta must be > 0")
        self._check_position(position)

        new_position = position.add_liquidity(liquidity_delta)
        new_liquidity = checked_add(self.liquidity, liquidity_delta)
        return self.model_copy(update={"liquidity": new_liquidity}), new_position

    def apply_remove_liquidity(
        self, position: Position, liquidity_delta: int
    ) -> tuple["Pool", Position]:
        """
        Удаление ликвидности из позиции и пула.

        Raises:
            InvalidParameterError: AMOUNT_IS_ZERO если liquidity_delta <= 0
            StateMismatchError: INSUFFICIENT_LIQUIDITY если delta > unlocked_liquidity,
                POOL_MISMATCH
        """
        if liquidity_delta <= 0:
            raise InvalidParameterError(PoolErrorCode.AMOUNT_IS_ZERO, "liquidity_delta must be > 0")
        self._check_position(position)
        new_position = position.remove_unlocked_liquidity(liquidity_delta)
        if liquidity_delta > self.liquidity:
            raise StateMismatchError(
                PoolErrorCode.INSUFFICIENT_LIQUIDITY,
                f"remove {liquidity_delta} > pool liquidity {self.liquidity}",
            )
        return (
            self.model_copy(update={"liquidity": checked_sub(self.liquidity, liquidity_delta)}),
            new_position,
        )

    # =========================================================================
    # PROTOCOL FEES
    # =========================================================================

    def accrue_protocol_fee(self, amount_a: int, amount_b: int) -> "Pool":
        """Начисление протокольной комиссии (со стороны свапов)"""
        if amount_a < 0 or amount_b < 0:
            raise InvalidParameterError(
                PoolErrorCode.INVALID_AMOUNT, f"negative accrual ({amount_a}, {amount_b})"
            )
        return self.model_copy(
            update={
                "protocol_fee_a": checked_add(self.protocol_fee_a, amount_a, U64_MAX),
                "protocol_fee_b": checked_add(self.protocol_fee_b, amount_b, U64_MAX),
            }
        )

    def claim_protocol_fee(self, max_amount_a: int, max_amount_b: int) -> tuple["Pool", int, int]:
        """
        Вывод протокольных комиссий, но не больше накопленного.

        withdrawn_x = min(max_amount_x, protocol_fee_x)

        Returns:
            (новый Pool, token_a_amount, token_b_amount)

        Raises:
            InvalidParameterError: INVALID_AMOUNT если максимум вне [0, U64_MAX]
        """
        for name, value in (("max_amount_a", max_amount_a), ("max_amount_b", max_amount_b)):
            if not 0 <= value <= U64_MAX:
                raise InvalidParameterError(
                    PoolErrorCode.INVALID_AMOUNT, f"{name} {value} outside u64 range"
                )

        token_a_amount = min(max_amount_a, self.protocol_fee_a)
        token_b_amount = min(max_amount_b, self.protocol_fee_b)
        new_pool = self.model_copy(
            update={
                "protocol_fee_a": checked_sub(self.protocol_fee_a, token_a_amount),
                "protocol_fee_b": checked_sub(self.protocol_fee_b, token_b_amount),
            }
        )
        return new_pool, token_a_amount, token_b_amount

    # =========================================================================
    # REWARDS
    # =========================================================================

    def reward_info(self, reward_index: int) -> RewardInfo:
        """
        Raises:
            InvalidParameterError: INVALID_REWARD_INDEX
        """
        if not 0 <= reward_index < len(self.reward_infos):
            raise InvalidParameterError(
                PoolErrorCode.INVALID_REWARD_INDEX, f"reward index {reward_index}"
            )
        return self.reward_infos[reward_index]

    def with_reward_info(self, reward_index: int, reward_info: RewardInfo) -> "Pool":
        """Новый Pool с заменённым слотом"""
        self.reward_info(reward_index)
        infos = list(self.reward_infos)
        infos[reward_index] = reward_info
        return self.model_copy(update={"reward_infos": tuple(infos)})
