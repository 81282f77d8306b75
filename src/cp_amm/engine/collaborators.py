"""
Collaborators — внешние зависимости движка

Ядро не хранит сущности, не переводит активы и не публикует события само:
- CustodyTransfer: атомарный пакет переводов и расчёт комиссии перевода
- EntityStore: загрузка/сохранение Pool, Position и чтение Config
- NotificationSink: приём проверенных записей событий
- Clock: текущий слот и unix timestamp

Интерфейсы заданы через typing.Protocol. In-memory реализации ниже
используются в тестах и при встраивании движка.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from cp_amm.core.domain.config import Config
from cp_amm.core.domain.pool import Pool
from cp_amm.core.domain.position import Position
from cp_amm.core.errors import TransferError


# =============================================================================
# INTERFACES
# =============================================================================


@dataclass(frozen=True)
class TransferRecord:
    """Один перевод пакета"""

    source: str
    destination: str
    mint: str
    amount: int


class CustodyTransfer(Protocol):
    def transfer_batch(self, transfers: Sequence[TransferRecord]) -> None:
        """
        Все переводы операции одним вызовом: либо выполнены все, либо ни один.

        Raises:
            TransferError: пакет не выполнен, ни один перевод не применён
        """
        ...

    def transfer_fee_included_amount(self, mint: str, amount: int) -> int:
        """Сколько отправить, чтобы получатель получил amount"""
        ...

    def transfer_fee_excluded_amount(self, mint: str, amount: int) -> int:
        """Сколько получит получатель, если отправить amount"""
        ...


class EntityStore(Protocol):
    def load_pool(self, pool_id: str) -> Pool: ...

    def save_pool(self, pool: Pool) -> None: ...

    def load_position(self, position_id: str) -> Position: ...

    def save_position(self, position: Position) -> None: ...

    def load_config(self, index: int) -> Config: ...


class NotificationSink(Protocol):
    def emit(self, event_name: str, record: Dict[str, Any]) -> None: ...


class Clock(Protocol):
    def unix_timestamp(self) -> int: ...

    def slot(self) -> int: ...


# =============================================================================
# IN-MEMORY IMPLEMENTATIONS
# =============================================================================


class RecordingCustody:
    """
    Журнал переводов с плоской комиссией перевода по mint.

    fail_on_mint: пакет с переводом этого mint падает с TransferError целиком
    (для проверки атомарности операций).
    """

    def __init__(
        self,
        transfer_fees: Optional[Mapping[str, int]] = None,
        fail_on_mint: Optional[str] = None,
    ):
        self.transfer_fees = dict(transfer_fees or {})
        self.fail_on_mint = fail_on_mint
        self.transfers: List[TransferRecord] = []

    def transfer_batch(self, transfers: Sequence[TransferRecord]) -> None:
        # журнал дополняется только после проверки всего пакета
        for transfer in transfers:
            if transfer.mint == self.fail_on_mint:
                raise TransferError(
                    f"transfer of {transfer.amount} {transfer.mint} from {transfer.source} rejected"
                )
        self.transfers.extend(transfers)

    def transfer_fee_included_amount(self, mint: str, amount: int) -> int:
        if amount == 0:
            return 0
        return amount + self.transfer_fees.get(mint, 0)

    def transfer_fee_excluded_amount(self, mint: str, amount: int) -> int:
        return max(amount - self.transfer_fees.get(mint, 0), 0)

    def balance_of(self, owner: str, mint: str) -> int:
        """Нетто-поток по журналу (входящие минус исходящие)"""
        balance = 0
        for record in self.transfers:
            if record.mint != mint:
                continue
            if record.destination == owner:
                balance += record.amount
            if record.source == owner:
                balance -= record.amount
        return balance


class InMemoryStore:
    """
    Хранилище сущностей в словарях.

    Модели frozen, поэтому хранимый экземпляр нельзя изменить в обход save_*.
    """

    def __init__(self):
        self.pools: Dict[str, Pool] = {}
        self.positions: Dict[str, Position] = {}
        self.configs: Dict[int, Config] = {}

    def load_pool(self, pool_id: str) -> Pool:
        try:
            return self.pools[pool_id]
        except KeyError:
            raise KeyError(f"pool not found: {pool_id}") from None

    def save_pool(self, pool: Pool) -> None:
        self.pools[pool.pool_id] = pool

    def load_position(self, position_id: str) -> Position:
        try:
            return self.positions[position_id]
        except KeyError:
            raise KeyError(f"position not found: {position_id}") from None

    def save_position(self, position: Position) -> None:
        self.positions[position.position_id] = position

    def load_config(self, index: int) -> Config:
        try:
            return self.configs[index]
        except KeyError:
            raise KeyError(f"config not found: {index}") from None

    def save_config(self, config: Config) -> None:
        self.configs[config.index] = config


class EventRecorder:
    """Sink, сохраняющий записи событий по порядку"""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event_name: str, record: Dict[str, Any]) -> None:
        self.events.append((event_name, record))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def last(self, event_name: str) -> Dict[str, Any]:
        for name, record in reversed(self.events):
            if name == event_name:
                return record
        raise LookupError(f"no {event_name} emitted")


@dataclass
class FixedClock:
    """Часы с ручной установкой времени"""

    timestamp: int = 0
    current_slot: int = 0

    def unix_timestamp(self) -> int:
        return self.timestamp

    def slot(self) -> int:
        return self.current_slot
