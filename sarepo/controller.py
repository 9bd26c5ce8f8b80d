#  ResourceController: the CRUD actions of an exposed resource
#
#  - get_single : fetch one entity by id
#  - get_collection : fetch a page of entities with pagination metadata
#  - create : validate, resolve associations and insert a new entity
#  - update : merge the non-null fields of a (partial) entity into the stored entity
#  - delete : remove an entity
#
#  The controller is created for a single request, its collaborators are passed to the constructor.
#  Errors are raised, never caught: the transport layer converts them to responses.
#
from typing import Any, Optional

from sqlalchemy import distinct, func
from sqlalchemy.orm import Query
from sqlalchemy.orm.exc import MultipleResultsFound, NoResultFound

import sarepo
from .errors import BadRequestError, ConflictError, InternalPersistenceError, NotFoundError
from .metadata import ResourceDescriptor
from .query_params import QueryParams
from .repository import RepositoryWrapper
from .urls import RequestContext, UrlBuilder
from .validation import CREATE, UPDATE, ColumnValidator, Validator


class CollectionResponse:
    """
    A page of entities and the pagination metadata:
    {
        "results": [ ... ],
        "_metadata": {"total": 10, "limit": 3, "offset": 3, "next": "...", "previous": "..."}
    }
    """

    def __init__(self, results: list, total: int, limit: int, offset: int, next: Optional[str] = None, previous: Optional[str] = None) -> None:
        # pylint: disable=redefined-builtin
        self.results = results
        self.total = total
        self.limit = limit
        self.offset = offset
        self.next = next
        self.previous = previous

    @property
    def metadata(self) -> dict:
        result = {"total": self.total, "limit": self.limit, "offset": self.offset}
        if self.next is not None:
            result["next"] = self.next
        if self.previous is not None:
            result["previous"] = self.previous
        return result

    def to_dict(self) -> dict:
        return {"results": self.results, "_metadata": self.metadata}


class ResourceController:
    """
    :param descriptor: the exposed resource
    :param repository: RepositoryWrapper for descriptor.model
    :param request_context: urls.RequestContext of the current request
    :param validator: validation.Validator, defaults to the descriptor validator or a ColumnValidator
    """

    def __init__(
        self,
        descriptor: ResourceDescriptor,
        repository: RepositoryWrapper,
        request_context: RequestContext,
        validator: Optional[Validator] = None,
    ) -> None:
        if repository.model is not descriptor.model:
            raise ValueError(f"Repository model {repository.model} doesn't match resource model {descriptor.model}")
        self.descriptor = descriptor
        self.repository = repository
        self.request = request_context
        self.validator = validator or descriptor.validator or ColumnValidator()
        self.urls = UrlBuilder(request_context, descriptor.name)

    def create_query(self) -> Query:
        """
        :return: base query, scoped by the descriptor's query_where hook
        """
        query = self.repository.create_query()
        return self.descriptor.scope_query(query)

    def get_single(self, id: Any) -> Any:
        """
        :param id: id from the url path
        :return: entity
        :raises NotFoundError: no entity with this id (within the query scope)
        """
        # pylint: disable=redefined-builtin
        id_field = self.repository.get_id_field()
        id_value = self.repository.convert_id(id)
        query = self.create_query().filter(getattr(self.descriptor.model, id_field) == id_value)
        try:
            return query.one()
        except NoResultFound:
            raise NotFoundError(f'Invalid "{self.descriptor.model.__name__}" ID "{id}"')
        except MultipleResultsFound:
            raise InternalPersistenceError(f'Multiple "{self.descriptor.model.__name__}" entities with ID "{id}"')

    def get_collection(self) -> CollectionResponse:
        """
        :return: CollectionResponse with the requested page
        :raises BadRequestError: invalid limit or offset
        """
        params = QueryParams.parse(self.request.args)
        limit, offset = params.limit, params.offset

        base_query = self.create_query()
        # fetch results, order by id so the pages don't overlap
        id_attr = getattr(self.descriptor.model, self.repository.get_id_field())
        results = base_query.order_by(id_attr).offset(offset).limit(limit).all()

        # fetch the total of the filtered collection
        # count distinct ids: a query_where hook may join to-many relationships
        total = base_query.order_by(None).with_entities(func.count(distinct(id_attr))).scalar()

        response = CollectionResponse(results, total, limit, offset)

        # create next/prev links
        if limit + offset < total:
            response.next = self.urls.collection_url(limit, offset + limit)
        if offset > 0:
            response.previous = self.urls.collection_url(limit, max(offset - limit, 0))

        sarepo.log.debug(f"{self.descriptor.name}: {len(results)} of {total} results ({params})")
        return response

    def create(self, entity: Any) -> Any:
        """
        :param entity: entity deserialized from the request payload
        :return: the persisted entity
        """
        with self.repository.transaction():
            self.validate_entity(entity, CREATE)
            self.repository.assign_associated_entities(entity)
            self.repository.save(entity)
        return entity

    def location(self, entity: Any) -> str:
        """
        :return: absolute url of the entity, used in the "Location" header of created resources
        """
        return self.urls.instance_url(self.repository.get_id_value(entity))

    def update(self, id: Any, new_entity: Any) -> Any:
        """
        Merge the non-null fields of `new_entity` into the stored entity

        The merged entity is validated after the associations are resolved,
        so validation applies to the state that will be stored.

        :param id: id from the url path
        :param new_entity: entity deserialized from the request payload
        :return: the merged entity
        """
        # pylint: disable=redefined-builtin
        with self.repository.transaction():
            old_entity = self.get_single(id)
            self.check_not_empty(new_entity)

            metadata = self.repository.get_metadata()

            # check ids
            id_value = self.repository.get_id_value(new_entity)
            if id_value is not None and id_value != self.repository.convert_id(id):
                raise BadRequestError("ID value in entity should be unset or identical to ID in url.")

            # check versions
            exclude = [metadata.id_field]
            if metadata.version_field:
                exclude.append(metadata.version_field)
                new_version = metadata.get_field_value(new_entity, metadata.version_field)
                old_version = metadata.get_field_value(old_entity, metadata.version_field)
                if new_version is not None and new_version != old_version:
                    raise ConflictError(f"{self.descriptor.name} {id}: version {new_version} != {old_version}")

            # merge entities
            merged = metadata.merge(old_entity, new_entity, exclude=exclude)
            sarepo.log.debug(f"{self.descriptor.name} {id}: merged fields {merged}")

            self.repository.assign_associated_entities(old_entity)

            self.validate_entity(old_entity, UPDATE)
            self.repository.save()
        return old_entity

    def delete(self, id: Any) -> None:
        """
        :param id: id from the url path
        :raises NotFoundError: no entity with this id
        """
        # pylint: disable=redefined-builtin
        with self.repository.transaction():
            entity = self.get_single(id)
            self.repository.remove(entity)

    def check_not_empty(self, entity: Any) -> None:
        """
        :raises BadRequestError: no entity could be read from the request payload
        """
        if not entity:
            missing_header = not self.request.content_type
            raise BadRequestError("Empty entity." + (" Content-type header is missing" if missing_header else ""))

    def validate_entity(self, entity: Any, context: str) -> None:
        """
        :param entity: entity to validate
        :param context: validation context, "create" or "update"
        :raises BadRequestError: empty entity or validation violations
        """
        self.check_not_empty(entity)
        violations = self.validator.validate(entity, context)
        if violations:
            raise BadRequestError("Entity validation error", violations=violations)
