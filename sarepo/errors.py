# Exception classes
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions are raised by the controller and the repository wrapper,
# they are caught in http_method_decorator and formatted, for example:
# {
#      "title": "Bad Request: Invalid value for limit parameter",
#      "detail": "Bad Request: Invalid value for limit parameter",
#      "code": "400"
# }
#
import traceback
from http import HTTPStatus
from flask import has_request_context, request
from sqlalchemy.exc import DontWrapMixin
from werkzeug.exceptions import NotFound
import sarepo
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class RestError(Exception, DontWrapMixin):
    """
    Base class of the errors raised while handling a resource action
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""

    def __str__(self):
        return self.message


class BadRequestError(RestError):
    """
    This exception is raised when invalid input has been detected (client side input):
    pagination parameters, ids, empty payloads and entity validation failures.
    Always send back the message to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Bad Request: "

    def __init__(self, message="", violations=None, status_code=HTTPStatus.BAD_REQUEST.value):
        """
        :param message: Message to be returned in the (json) body
        :param violations: list of validation.Violation, returned to the client
        :param status_code: HTTP Status code
        """
        Exception.__init__(self, message)
        self.status_code = status_code
        self.violations = list(violations or [])
        sarepo.log.warning("BadRequestError: %s", message)
        self.message += message


class AssociationResolutionError(BadRequestError):
    """
    This exception is raised when an entity references a related entity that doesn't exist
    """

    message = "Association Error: "


class NotFoundError(RestError, NotFound):
    """
    This exception is raised when an item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    message = "NotFoundError "

    def __init__(self, message="", status_code=HTTPStatus.NOT_FOUND.value):
        RestError.__init__(self, message)
        NotFound.__init__(self)
        self.status_code = status_code
        sarepo.log.error("Not found: %s", message)
        if is_debug():
            self.message += message
        else:
            self.message += HIDDEN_LOG


class ConflictError(RestError):
    """
    This exception is raised when an update was based on a stale version of the entity
    """

    status_code = HTTPStatus.CONFLICT.value
    message = "Conflict: "

    def __init__(self, message="", status_code=HTTPStatus.CONFLICT.value):
        Exception.__init__(self, message)
        self.status_code = status_code
        sarepo.log.warning("ConflictError: %s", message)
        self.message += message


class InternalPersistenceError(RestError):
    """
    This exception is raised when the storage layer failed
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Persistence Error: "

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        Exception.__init__(self, message)
        self.status_code = status_code
        sarepo.log.error("Persistence Error: %s", message)
        if is_debug():
            if has_request_context():
                sarepo.log.info(f"Error in {request.url}")
            sarepo.log.debug(traceback.format_exc(120))
            self.message += str(message)
        else:
            self.message += HIDDEN_LOG
