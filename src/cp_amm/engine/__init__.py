"""Engine — операции пула поверх внешних коллабораторов.

- Stage → validate → transfer → commit
- Коллабораторы: CustodyTransfer, EntityStore, NotificationSink, Clock
- Проверка контрактов событий до коммита
"""

from .collaborators import (
    Clock,
    CustodyTransfer,
    EntityStore,
    EventRecorder,
    FixedClock,
    InMemoryStore,
    NotificationSink,
    RecordingCustody,
    TransferRecord,
)
from .config import EngineConfig
from .engine import PoolEngine
from .params import InitializeCustomizablePoolParameters, InitializePoolParameters

__all__ = [
    "PoolEngine",
    "EngineConfig",
    "InitializePoolParameters",
    "InitializeCustomizablePoolParameters",
    # Interfaces
    "Clock",
    "CustodyTransfer",
    "EntityStore",
    "NotificationSink",
    # In-memory
    "EventRecorder",
    "FixedClock",
    "InMemoryStore",
    "RecordingCustody",
    "TransferRecord",
]
