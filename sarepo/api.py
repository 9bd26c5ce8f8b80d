#  Flask binding: exposes ResourceDescriptors as flask-restful resources
#
#  For a resource "Users" the following routes are created (route name => method, url):
#  - Users_get_collection => GET /Users/
#  - Users_create => POST /Users/
#  - Users_get_single => GET /Users/<id>/
#  - Users_update => PUT, PATCH /Users/<id>/
#  - Users_delete => DELETE /Users/<id>/
#
#  Only the descriptor's allowed_actions are routed, other methods are answered with 405 by flask.
#
import logging
from functools import wraps
from http import HTTPStatus
from typing import Any, Callable, Optional

import werkzeug
from flask import Flask, jsonify, make_response, request, url_for
from flask_restful import Api as FRApiBase
from flask_restful import Resource, abort
from sqlalchemy import inspect as sqla_inspect

import sarepo
from .attr_parse import parse_attr
from .controller import ResourceController
from .errors import BadRequestError, RestError
from .json_encoder import SarepoJSONProvider
from .metadata import ResourceDescriptor, get_metadata
from .repository import RepositoryWrapper
from .sarepo_init import SAREPO
from .urls import route_name

COLLECTION_URL_FMT = "/{}/"
INSTANCE_URL_FMT = "/{}/<string:id>/"

# action => (resource method name, http methods, url format)
ACTION_ROUTES = {
    "get_collection": ("get", ["GET"], COLLECTION_URL_FMT),
    "create": ("post", ["POST"], COLLECTION_URL_FMT),
    "get_single": ("get", ["GET"], INSTANCE_URL_FMT),
    "update": ("put", ["PUT", "PATCH"], INSTANCE_URL_FMT),
    "delete": ("delete", ["DELETE"], INSTANCE_URL_FMT),
}


class FlaskRequestContext:
    """
    urls.RequestContext implementation for the current flask request
    """

    @property
    def args(self):
        return request.args

    @property
    def content_type(self) -> Optional[str]:
        return request.headers.get("Content-Type")

    @property
    def scheme(self) -> str:
        return request.scheme

    @property
    def host(self) -> str:
        return request.host

    def url_for(self, route_name: str, **params: Any) -> str:
        # pylint: disable=redefined-outer-name
        return url_for(route_name, **params)


def load_entity(descriptor: ResourceDescriptor) -> Optional[Any]:
    """
    Create a (transient) entity from the json request payload
    Only the entity fields are set, other payload keys are ignored

    :param descriptor: exposed resource
    :return: entity or None if the payload is empty
    """
    payload = request.get_json(silent=True)
    if payload is None or payload == {}:
        return None
    if not isinstance(payload, dict):
        raise BadRequestError(f"Invalid JSON Payload : {payload}")

    metadata = descriptor.metadata
    # bypass __init__, models may define a custom constructor
    entity = sqla_inspect(descriptor.model).class_manager.new_instance()
    for attr_name, attr_val in payload.items():
        if not metadata.has_field(attr_name):
            sarepo.log.debug(f"Ignoring unknown attribute {descriptor.name}.{attr_name}")
            continue
        metadata.set_field_value(entity, attr_name, parse_attr(metadata.get_column(attr_name), attr_val))
    return entity


class RestResource(Resource):
    """
    Superclass of the exposed endpoints, the http methods call the ResourceController actions

    Subclasses are generated by RestAPI.expose_resource, with the class attributes:
    - descriptor: the exposed ResourceDescriptor
    - db: the Flask-SQLAlchemy extension
    """

    descriptor = None
    db = None

    def get_controller(self) -> ResourceController:
        repository = RepositoryWrapper(self.db.session, self.descriptor.model)
        return ResourceController(self.descriptor, repository, FlaskRequestContext(), self.descriptor.validator)


class CollectionResource(RestResource):
    def get(self):
        """
        HTTP GET: return a page of the collection
        """
        response = self.get_controller().get_collection()
        return make_response(jsonify(response), HTTPStatus.OK)

    def post(self):
        """
        HTTP POST: create a new instance
        Location Header identifies the location of the newly created resource
        """
        controller = self.get_controller()
        entity = controller.create(load_entity(self.descriptor))
        response = make_response(jsonify(entity), HTTPStatus.CREATED)
        if self.descriptor.allows("get_single"):
            response.headers["Location"] = controller.location(entity)
        return response


class InstanceResource(RestResource):
    def get(self, id):
        """
        HTTP GET: return the instance with the given id
        """
        # pylint: disable=redefined-builtin
        entity = self.get_controller().get_single(id)
        return make_response(jsonify(entity), HTTPStatus.OK)

    def put(self, id):
        """
        HTTP PUT/PATCH: update the instance, fields that are null or missing in the payload are left untouched
        """
        # pylint: disable=redefined-builtin
        entity = self.get_controller().update(id, load_entity(self.descriptor))
        return make_response(jsonify(entity), HTTPStatus.OK)

    patch = put

    def delete(self, id):
        """
        HTTP DELETE: remove the instance
        """
        # pylint: disable=redefined-builtin
        self.get_controller().delete(id)
        return make_response("", HTTPStatus.NO_CONTENT)


class RestAPI(FRApiBase):
    """
    Subclass of the flask_restful API class where we add the expose_resource method
    this method creates the url endpoints for a ResourceDescriptor

    :param app: Flask application
    :param prefix: url prefix, eg. "/api"
    :param app_db: Flask-SQLAlchemy extension, defaults to app.extensions["sqlalchemy"]
    :param kwargs: configuration settings (cfr. SAREPO class variables)
    """

    def __init__(self, app: Flask, prefix: str = "", app_db=None, **kwargs) -> None:
        self.sarepo = SAREPO(app, app_db=app_db, **kwargs)
        self.db = self.sarepo.db
        app.config.setdefault("ERROR_404_HELP", False)
        app.json = SarepoJSONProvider(app)
        super().__init__(app, prefix=prefix)
        self.resources_exposed = {}

    def expose_resource(self, descriptor: ResourceDescriptor) -> None:
        """
        Create the routes for the allowed actions of the resource

        creates classes of the form

        @api_decorator
        class Users_get_collection_API(CollectionResource):
            descriptor = descriptor
        """
        if descriptor.name in self.resources_exposed:
            raise ValueError(f"Resource {descriptor.name} is already exposed")
        # raises ValueError for models without a single column primary key
        get_metadata(descriptor.model)

        properties = {"descriptor": descriptor, "db": self.db}
        for action in descriptor.allowed_actions:
            method_name, methods, url_fmt = ACTION_ROUTES[action]
            base = CollectionResource if url_fmt == COLLECTION_URL_FMT else InstanceResource
            api_class_name = f"{descriptor.name}_{action}_API"
            api_class = api_decorator(type(api_class_name, (base,), properties), [method_name])
            url = url_fmt.format(descriptor.name)
            endpoint = route_name(descriptor.name, action)
            sarepo.log.info(f"Exposing {descriptor.name} {action} on {self.prefix}{url} {methods}, endpoint: {endpoint}")
            self.add_resource(api_class, url, endpoint=endpoint, methods=methods)

        self.resources_exposed[descriptor.name] = descriptor

    def expose(self, *descriptors: ResourceDescriptor) -> None:
        """
        Expose multiple resources at once
        """
        for descriptor in descriptors:
            self.expose_resource(descriptor)


def api_decorator(cls, method_names):
    """Decorator for the API views: add generic exception handling to the http methods

    :param cls: The class that will be decorated (a CollectionResource or InstanceResource subclass)
    :param method_names: the http methods of the class that are routed
    :return: decorated class
    """
    for method_name in method_names:
        method = getattr(cls, method_name)
        decorated_method = http_method_decorator(method, cls.db)
        setattr(cls, method_name, decorated_method)
        if method_name == "put":
            setattr(cls, "patch", decorated_method)
    return cls


def http_method_decorator(fun: Callable, db) -> Callable:
    """Decorator for the http methods (get, post, put, patch, delete)
    - roll back the session when an exception occurred
    - convert all exceptions to a JSON error response

    :param fun: http method
    :param db: Flask-SQLAlchemy extension
    :return: wrapped fun
    """

    @wraps(fun)
    def method_wrapper(*args, **kwargs):
        """Wrap the method and perform error handling
        :return: result of the wrapped method
        """
        rest_exception = None
        status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
        message = ""
        try:
            return fun(*args, **kwargs)

        except RestError as exc:
            # this also catches NotFoundError
            rest_exception = exc
            message = exc.message
            status_code = exc.status_code

        except werkzeug.exceptions.HTTPException as exc:
            status_code = exc.code
            message = exc.description
            sarepo.log.error(message)

        except Exception as exc:
            sarepo.log.exception(exc)
            if sarepo.log.getEffectiveLevel() > logging.DEBUG:
                message = "Logging Disabled"
            else:
                message = str(exc)

        db.session.rollback()
        errors = dict(title=message, detail=message, code=str(status_code))
        violations = getattr(rest_exception, "violations", None)
        if violations:
            errors["violations"] = [violation.to_dict() for violation in violations]
        abort(status_code, errors=[errors])

    return method_wrapper
