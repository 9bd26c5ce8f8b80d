"""
RepositoryWrapper: persistence access for one entity type

All session access of the controller goes through this facade:
id introspection, metadata, query creation, association resolution, save and remove.
Storage errors are converted to the sarepo error types.
"""
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import sqlalchemy
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm import Query, Session
from sqlalchemy.orm.exc import StaleDataError

import sarepo
from .errors import AssociationResolutionError, BadRequestError, ConflictError, InternalPersistenceError, NotFoundError
from .metadata import EntityMetadata, get_metadata


class RepositoryWrapper:
    """
    :param session: SQLAlchemy session
    :param model: SQLAlchemy mapped class
    """

    def __init__(self, session: Session, model: type) -> None:
        self.session = session
        self.model = model
        self._metadata = get_metadata(model)

    def get_metadata(self) -> EntityMetadata:
        return self._metadata

    def get_id_field(self) -> str:
        return self._metadata.id_field

    def get_id_value(self, entity: Any) -> Optional[Any]:
        return self._metadata.get_field_value(entity, self.get_id_field())

    def convert_id(self, raw_id: Any) -> Any:
        """
        Convert an id from the url path to the python type of the id column

        :param raw_id: id string
        :return: converted id
        """
        column = self._metadata.get_column(self.get_id_field())
        try:
            python_type = column.type.python_type
        except NotImplementedError:
            # custom column type, leave it to the database
            return raw_id
        if isinstance(raw_id, python_type):
            return raw_id
        try:
            return python_type(raw_id)
        except (TypeError, ValueError):
            raise BadRequestError(f"Invalid id: '{raw_id}'.")

    def create_query(self) -> Query:
        """
        :return: a query for the entity type without filters
        """
        return self.session.query(self.model)

    def assign_associated_entities(self, entity: Any) -> None:
        """
        Replace the foreign keys of the many-to-one associations with the referenced instances

        :param entity: entity that will be modified
        :raises AssociationResolutionError: a referenced entity doesn't exist
        """
        for association in self._metadata.associations:
            fk_value = getattr(entity, association.fk_field, None)
            if fk_value is None:
                continue
            # session.get() returns the instance from the identity map when it's loaded already
            try:
                # the entity may hold merged, unvalidated changes: these must not be flushed here
                with self.session.no_autoflush:
                    related = self.session.get(association.target, fk_value)
            except sqlalchemy.exc.SQLAlchemyError as exc:
                raise InternalPersistenceError(f"Failed to load {association.target.__name__} {fk_value}: {exc}")
            if related is None:
                raise AssociationResolutionError(f'Invalid "{association.name}" reference: {association.target.__name__} "{fk_value}" does not exist')
            setattr(entity, association.name, related)
            sarepo.log.debug(f"Assigned {association.target.__name__} {fk_value} to {self.model.__name__}.{association.name}")

    def save(self, entity: Any = None) -> None:
        """
        Persist (insert or update) the entity
        If no entity is given, the changes of the tracked entities are flushed

        :param entity: entity to be added to the session
        """
        if entity is not None and entity not in self.session:
            self.session.add(entity)
        self._commit()

    def remove(self, entity: Any) -> None:
        """
        Delete the entity

        :raises NotFoundError: the entity isn't persisted
        """
        state = sqla_inspect(entity)
        if not state.persistent:
            raise NotFoundError(f'"{self.model.__name__}" entity is not persisted')
        self.session.delete(entity)
        self._commit()

    def rollback(self) -> None:
        self.session.rollback()

    @contextmanager
    def transaction(self) -> Iterator["RepositoryWrapper"]:
        """
        Roll back the session when the enclosed block raises, so no partial writes or
        dirty instances remain in the session
        """
        try:
            yield self
        except Exception:
            sarepo.log.debug(f"Rolling back {self.model.__name__} transaction")
            self.rollback()
            raise

    def _commit(self) -> None:
        try:
            self.session.commit()
        except StaleDataError as exc:
            self.rollback()
            raise ConflictError(f"{self.model.__name__} was modified concurrently ({exc})")
        except sqlalchemy.exc.SQLAlchemyError as exc:
            # Exception may arise when a db constraint has been violated (e.g. duplicate key)
            self.rollback()
            raise InternalPersistenceError(str(exc))
