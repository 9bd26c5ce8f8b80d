"""
Entity validation

Validators receive the entity and a context ("create" or "update") and return a list of violations.
The controller raises a BadRequestError when the list isn't empty.
"""
from dataclasses import asdict, dataclass
from typing import Any, List, Protocol

from sqlalchemy import String

from .metadata import get_metadata

CREATE = "create"
UPDATE = "update"


@dataclass(frozen=True)
class Violation:
    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class Validator(Protocol):
    def validate(self, entity: Any, context: str) -> List[Violation]:
        ...


class ColumnValidator:
    """
    Validate an entity against the constraints of its table columns:
    - create: non-nullable columns without a default must be set
    - string values may not exceed the column length
    """

    def validate(self, entity: Any, context: str) -> List[Violation]:
        metadata = get_metadata(type(entity))
        violations = []
        for field_name in metadata.field_names:
            column = metadata.get_column(field_name)
            value = metadata.get_field_value(entity, field_name)
            if value is None:
                if context == CREATE and self._is_required(column, metadata):
                    violations.append(Violation(field_name, "This value should not be null."))
                continue
            length = getattr(column.type, "length", None)
            if isinstance(column.type, String) and length and isinstance(value, str) and len(value) > length:
                violations.append(Violation(field_name, f"This value is too long. It should have {length} characters or less."))
        return violations

    @staticmethod
    def _is_required(column, metadata) -> bool:
        if column.nullable or column.default is not None or column.server_default is not None:
            return False
        if column.primary_key:
            # autoincrement / generated keys
            return False
        if metadata.version_field and column is metadata.get_column(metadata.version_field):
            return False
        return True
