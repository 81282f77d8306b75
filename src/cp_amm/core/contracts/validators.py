"""
JSON Schema Event Contracts

Модуль для валидации событий пула согласно JSON Schema контрактам.
Использует библиотеку jsonschema для проверки точного набора полей
(required + additionalProperties: false) перед передачей события наружу.

Схемы лежат в cp_amm/core/contracts/schema/<event_name>.json.
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator

from cp_amm.core.domain.events import PoolEvent


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Схемы поставляются вместе с пакетом (package data).
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'evt_claim_protocol_fee')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема невалидна
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Валидатор данных против одной JSON Schema.
    """

    def __init__(self, schema_name: str, loader: SchemaLoader = _SCHEMA_LOADER):
        self.schema_name = schema_name
        self.schema = loader.load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        return self.validator.iter_errors(data)


class EventContractValidator:
    """
    Валидатор событий: выбирает схему по event_name и кэширует валидаторы.
    """

    def __init__(self, loader: SchemaLoader = _SCHEMA_LOADER):
        self._loader = loader
        self._validators: Dict[str, ContractValidator] = {}

    def _validator_for(self, event_name: str) -> ContractValidator:
        if event_name not in self._validators:
            self._validators[event_name] = ContractValidator(event_name, self._loader)
        return self._validators[event_name]

    def to_record(self, event: PoolEvent) -> Dict[str, Any]:
        """
        Событие → проверенный dict для коллаборатора уведомлений.

        Raises:
            jsonschema.ValidationError: Если набор полей не совпадает с контрактом
        """
        record = event.model_dump(mode="json")
        self._validator_for(event.event_name).validate(record)
        return record


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_event(event: PoolEvent) -> None:
    """
    Валидация события против его контракта.

    Raises:
        jsonschema.ValidationError: Если событие не соответствует схеме
    """
    EventContractValidator().to_record(event)
