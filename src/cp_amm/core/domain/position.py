"""
Position — доля одного провайдера ликвидности в одном пуле

Immutable Pydantic модель. Позиция ссылается на пул по идентификатору,
а не живой ссылкой: каждая операция находит пул и передаёт его явно.
Мутировать позицию можно только через операции Pool (apply_add/remove_liquidity),
каждая возвращает новый экземпляр.

Жизненный цикл: создаётся с нулевой или начальной ликвидностью, неявно не удаляется;
нулевая ликвидность — валидное живое состояние.
"""

from pydantic import BaseModel, Field

from cp_amm.core.errors import PoolErrorCode, StateMismatchError
from cp_amm.core.math.fixed_point import U128_MAX, checked_add


class Position(BaseModel):
    """Позиция провайдера ликвидности"""

    position_id: str = Field(..., min_length=1, description="Идентификатор позиции")
    pool: str = Field(..., min_length=1, description="Идентификатор пула-владельца")
    owner: str = Field(..., min_length=1, description="Владелец позиции")
    nft_mint: str = Field(..., min_length=1, description="Токен владения позицией")
    unlocked_liquidity: int = Field(0, ge=0, le=U128_MAX, description="Свободная ликвидность")

    model_config = {"frozen": True}

    def add_liquidity(self, liquidity_delta: int) -> "Position":
        """Новый экземпляр с увеличенной ликвидностью"""
        new_liquidity = checked_add(self.unlocked_liquidity, liquidity_delta)
        return self.model_copy(update={"unlocked_liquidity": new_liquidity})

    def remove_unlocked_liquidity(self, liquidity_delta: int) -> "Position":
        """
        Новый экземпляр с уменьшенной ликвидностью.

        Raises:
            StateMismatchError: INSUFFICIENT_LIQUIDITY
        """
        if liquidity_delta > self.unlocked_liquidity:
            raise StateMismatchError(
                PoolErrorCode.INSUFFICIENT_LIQUIDITY,
                f"remove {liquidity_delta} > unlocked {self.unlocked_liquidity}",
            )
        return self.model_copy(
            update={"unlocked_liquidity": self.unlocked_liquidity - liquidity_delta}
        )

    def has_liquidity(self) -> bool:
        return self.unlocked_liquidity > 0
