# flake8: noqa: F401
#
# sarepo: SqlAlchemy REST repository controllers
#
from .sarepo_init import SAREPO, log
from .errors import (
    RestError,
    BadRequestError,
    AssociationResolutionError,
    NotFoundError,
    ConflictError,
    InternalPersistenceError,
)
from .metadata import EntityMetadata, ResourceDescriptor, get_metadata
from .query_params import QueryParams
from .repository import RepositoryWrapper
from .validation import Violation, Validator, ColumnValidator
from .urls import UrlBuilder, route_name
from .controller import ResourceController, CollectionResponse
from .api import RestAPI, FlaskRequestContext

__version__ = "1.0.0"
__description__ = "sarepo : SqlAlchemy REST repository controllers"

__all__ = (
    "__version__",
    "__description__",
    #
    "SAREPO",
    "RestAPI",
    "FlaskRequestContext",
    # resources:
    "ResourceDescriptor",
    "EntityMetadata",
    "get_metadata",
    "RepositoryWrapper",
    "ResourceController",
    "CollectionResponse",
    "QueryParams",
    "UrlBuilder",
    "route_name",
    # validation:
    "Violation",
    "Validator",
    "ColumnValidator",
    # Errors:
    "RestError",
    "BadRequestError",
    "AssociationResolutionError",
    "NotFoundError",
    "ConflictError",
    "InternalPersistenceError",
)
