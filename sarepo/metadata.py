"""
Entity type descriptors

``EntityMetadata`` is derived once from the SQLAlchemy mapper of a model class: it lists the mapped
column attributes (the entity "fields"), the id field, the optional version field and the
many-to-one associations. The controller reads and writes entity fields exclusively through it.

``ResourceDescriptor`` declares an exposed resource: the model, the resource name used in urls and
route names, the query scoping hook and the allowed actions.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import ColumnProperty, Query
from sqlalchemy.orm.interfaces import MANYTOONE

ACTIONS = ("get_single", "get_collection", "create", "update", "delete")


@dataclass(frozen=True)
class Association:
    """
    A many-to-one relationship whose foreign key may be supplied as a bare identifier
    """

    name: str  # relationship attribute, eg. "user"
    fk_field: str  # foreign key column attribute, eg. "user_id"
    target: type  # related model class


class EntityMetadata:
    """
    Field descriptor of a mapped entity type

    :param model: SQLAlchemy mapped class
    """

    def __init__(self, model: type) -> None:
        mapper = sqla_inspect(model)
        self.model = model
        self.mapper = mapper
        self._columns = {}
        for prop in mapper.iterate_properties:
            if isinstance(prop, ColumnProperty) and len(prop.columns) == 1:
                self._columns[prop.key] = prop.columns[0]

        pk_fields = [mapper.get_property_by_column(col).key for col in mapper.primary_key]
        if len(pk_fields) != 1:
            raise ValueError(f"{model.__name__}: composite or missing primary keys are not supported ({pk_fields})")
        self.id_field = pk_fields[0]

        self.version_field = None
        if mapper.version_id_col is not None:
            self.version_field = mapper.get_property_by_column(mapper.version_id_col).key

        self.associations = []
        for rel in mapper.relationships:
            if rel.direction != MANYTOONE or len(rel.local_columns) != 1:
                continue
            fk_col = next(iter(rel.local_columns))
            fk_prop = mapper.get_property_by_column(fk_col)
            self.associations.append(Association(rel.key, fk_prop.key, rel.mapper.class_))

    @property
    def field_names(self) -> list:
        """
        :return: names of the mapped column attributes, in mapper order
        """
        return list(self._columns)

    def get_column(self, field_name: str):
        return self._columns[field_name]

    def has_field(self, field_name: str) -> bool:
        return field_name in self._columns

    def get_field_value(self, entity: Any, field_name: str) -> Any:
        if field_name not in self._columns:
            raise KeyError(f"{self.model.__name__} has no field {field_name}")
        return getattr(entity, field_name, None)

    def set_field_value(self, entity: Any, field_name: str, value: Any) -> None:
        if field_name not in self._columns:
            raise KeyError(f"{self.model.__name__} has no field {field_name}")
        setattr(entity, field_name, value)

    def merge(self, target: Any, source: Any, exclude: Sequence[str] = ()) -> list:
        """
        Copy every non-null field value of `source` onto `target`

        :param target: entity that will be modified
        :param source: entity holding the new values
        :param exclude: field names that are never copied
        :return: names of the fields that were copied
        """
        merged = []
        for field_name in self.field_names:
            if field_name in exclude:
                continue
            new_value = self.get_field_value(source, field_name)
            if new_value is not None:
                self.set_field_value(target, field_name, new_value)
                merged.append(field_name)
        return merged

    def to_dict(self, entity: Any) -> dict:
        """
        :return: dictionary with the entity field values, used for serialization
        """
        return {field_name: self.get_field_value(entity, field_name) for field_name in self.field_names}


@lru_cache(maxsize=128)
def get_metadata(model: type) -> EntityMetadata:
    """
    :param model: SQLAlchemy mapped class
    :return: cached EntityMetadata for model
    """
    return EntityMetadata(model)


@dataclass
class ResourceDescriptor:
    """
    Declaration of an exposed resource

    :param model: SQLAlchemy mapped class
    :param name: resource name, used in the urls and route names (defaults to the table name)
    :param query_where: hook that receives the base query and returns it with additional filters,
        collection totals count distinct ids, so joins on to-many relationships don't inflate them
    :param allowed_actions: actions that will be routed
    :param validator: validation.Validator, defaults to validation.ColumnValidator
    """

    model: type
    name: Optional[str] = None
    query_where: Optional[Callable[[Query], Query]] = None
    allowed_actions: Sequence[str] = field(default=ACTIONS)
    validator: Any = None

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = getattr(self.model, "__tablename__", self.model.__name__)
        invalid = [action for action in self.allowed_actions if action not in ACTIONS]
        if invalid:
            raise ValueError(f"Invalid actions for resource {self.name}: {invalid}")

    @property
    def metadata(self) -> EntityMetadata:
        return get_metadata(self.model)

    @property
    def id_field(self) -> str:
        return self.metadata.id_field

    def scope_query(self, query: Query) -> Query:
        """
        Apply the `query_where` hook to the base query
        """
        if self.query_where is None:
            return query
        return self.query_where(query)

    def allows(self, action: str) -> bool:
        return action in self.allowed_actions
