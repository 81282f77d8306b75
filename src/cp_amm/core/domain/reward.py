"""
RewardInfo — слот reward-кампании пула

Immutable Pydantic модель. Состояния слота: Uninitialized → Initialized.
"Активна"/"истекла" не хранится: живость выводится сравнением
reward_duration_end с текущим временем.

Инвариант: reward_duration ∈ [MIN_REWARD_DURATION, MAX_REWARD_DURATION]
для инициализированного слота.
"""

from typing import Optional

from pydantic import BaseModel, Field

from cp_amm.core.math.fixed_point import (
    SCALE_OFFSET,
    U8_MAX,
    U64_MAX,
    U128_MAX,
    checked_add,
    to_u128,
)


class RewardInfo(BaseModel):
    """Слот reward-кампании"""

    initialized: bool = Field(False, description="Слот вооружён")
    reward_token_flag: int = Field(0, ge=0, le=U8_MAX, description="Флаг токен-программы")
    mint: Optional[str] = Field(None, description="Токен вознаграждения")
    vault: Optional[str] = Field(None, description="Хранилище вознаграждения")
    funder: Optional[str] = Field(None, description="Кто может пополнять/править слот")
    reward_duration: int = Field(0, ge=0, le=U64_MAX, description="Длина кампании (сек)")
    reward_duration_end: int = Field(0, ge=0, le=U64_MAX, description="Конец кампании (unix)")
    reward_rate: int = Field(0, ge=0, le=U128_MAX, description="Скорость выдачи (Q64.64 за сек)")

    model_config = {"frozen": True}

    def init_reward(
        self,
        mint: str,
        vault: str,
        funder: str,
        reward_duration: int,
        reward_token_flag: int,
    ) -> "RewardInfo":
        """Переход Uninitialized → Initialized"""
        return self.model_copy(
            update={
                "initialized": True,
                "mint": mint,
                "vault": vault,
                "funder": funder,
                "reward_duration": reward_duration,
                "reward_token_flag": reward_token_flag,
            }
        )

    def is_running(self, current_time: int) -> bool:
        """Кампания ещё идёт (end >= now)"""
        return self.reward_duration_end >= current_time

    def update_rate_after_funding(self, current_time: int, funding_amount: int) -> "RewardInfo":
        """
        Новая скорость после пополнения.

        Остаток работающей кампании добавляется к пополнению; в обоих случаях
        кампания перезапускается на reward_duration от current_time.
        """
        total_amount = funding_amount << SCALE_OFFSET
        if self.is_running(current_time):
            remaining_seconds = self.reward_duration_end - current_time
            total_amount += self.reward_rate * remaining_seconds

        reward_rate = to_u128(total_amount // self.reward_duration)
        return self.model_copy(
            update={
                "reward_rate": reward_rate,
                "reward_duration_end": checked_add(current_time, self.reward_duration, U64_MAX),
            }
        )

