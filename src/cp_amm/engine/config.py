"""
EngineConfig — параметры развёртывания движка

Frozen-конфигурация без глобального состояния: один экземпляр на развёртывание,
передаётся в PoolEngine явно.
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from cp_amm.core.constants import DEFAULT_LIMITS, ProtocolLimits


@dataclass(frozen=True)
class EngineConfig:
    """
    Attributes:
        treasury: получатель протокольных комиссий
        admins: административные ключи (правка reward-слотов любого пула)
        limits: границы, которые проверяет ядро
    """

    treasury: str
    admins: FrozenSet[str] = field(default_factory=frozenset)
    limits: ProtocolLimits = DEFAULT_LIMITS

    def __post_init__(self):
        if not self.treasury:
            raise ValueError("treasury must be set")
        # admins принимается любым iterable, хранится как frozenset
        object.__setattr__(self, "admins", frozenset(self.admins))
