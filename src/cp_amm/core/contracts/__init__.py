"""
Contract Validation Module

Модуль для валидации событий пула против JSON Schema контрактов.
"""

from .validators import (
    ContractValidator,
    EventContractValidator,
    SchemaLoader,
    validate_event,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "EventContractValidator",
    # Functions
    "validate_event",
]
