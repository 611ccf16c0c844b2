# Exception Handlers
#
# The application loglevel determines the level of detail shown to the user.
# If set to debug, too much sensitive info might be shown !
#
# The exceptions are caught by the routing adapters and formatted, for example:
# {
#     "errors": [
#         {
#             "title": "UnauthorizedError",
#             "detail": "Authorization Error: (debug logging disabled)",
#             "code": 401
#         }
#     ]
# }
#
from http import HTTPStatus
from typing import Iterable
from werkzeug.exceptions import NotFound
from sqlalchemy.exc import DontWrapMixin
import sacrud
from .config import is_debug

HIDDEN_LOG = "(debug logging disabled)"


class CrudError(Exception, DontWrapMixin):
    """
    Base class of the errors raised by the resource handlers
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value
    message = ""

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        """
        :return: the error object returned in the response body
        """
        return {"title": self.__class__.__name__, "detail": self.message, "code": self.status_code}


class BadRequestError(CrudError):
    """
    This exception is raised when the request is malformed: invalid id, body or query parameter
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Bad Request: "

    def __init__(self, message="", status_code=HTTPStatus.BAD_REQUEST.value):
        Exception.__init__(self)
        self.status_code = status_code
        self.message = self.__class__.message + message
        sacrud.log.warning("%s: %s", self.__class__.__name__, message)


class BadMethodError(BadRequestError):
    """
    This exception is raised when the HTTP method isn't allowed for the resource
    """

    message = "Method Not Allowed: "


class InvalidQueryKey(BadRequestError):
    """
    This exception is raised when a filter key doesn't resolve to a field of the entity,
    or when the modifier doesn't match the value (f.i. "in" with a single value)
    The key is always sent back to the client
    """

    message = "InvalidQueryKey: "

    def __init__(self, key="", reason=""):
        detail = f"{key} ({reason})" if reason else key
        super().__init__(detail)
        self.key = key


class UnauthorizedError(CrudError):
    """
    This exception is raised when the access check of a resource failed
    """

    status_code = HTTPStatus.UNAUTHORIZED.value
    message = "Authorization Error: "

    def __init__(self, message="", status_code=HTTPStatus.UNAUTHORIZED.value):
        Exception.__init__(self)
        self.status_code = status_code
        sacrud.log.error("UnauthorizedError: %s", message)
        if is_debug():
            self.message = self.__class__.message + message
        else:
            self.message = self.__class__.message + HIDDEN_LOG


class NotFoundError(CrudError, NotFound):
    """
    This exception is raised when an item was not found
    """

    status_code = HTTPStatus.NOT_FOUND.value
    message = "NotFoundError "

    def __init__(self, message="", status_code=HTTPStatus.NOT_FOUND.value):
        """
        :param message: Message to be returned in the (json) body
        :param status_code: HTTP Status code
        """
        NotFound.__init__(self, description=message)
        self.status_code = status_code
        sacrud.log.error("Not found: %s", message)
        if is_debug():
            self.message = self.__class__.message + message
        else:
            self.message = self.__class__.message + HIDDEN_LOG


class ValidationError(CrudError):
    """
    This exception is raised when the fields of a candidate item are invalid (client side input)
    Always send back the field names to the client in the response
    """

    status_code = HTTPStatus.BAD_REQUEST.value
    message = "Validation Error: "

    def __init__(self, fields: Iterable[str], status_code=HTTPStatus.BAD_REQUEST.value):
        Exception.__init__(self)
        self.status_code = status_code
        self.fields = list(fields)
        self.message = self.__class__.message + ", ".join(self.fields)
        sacrud.log.warning("ValidationError: %s", self.fields)


class GenericError(CrudError):
    """
    This exception is raised when an error has been detected, f.i. a failed db commit
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR.value  # 500
    message = "Generic Error: "

    def __init__(self, message, status_code=HTTPStatus.INTERNAL_SERVER_ERROR.value):
        Exception.__init__(self)
        self.status_code = status_code
        sacrud.log.error("Generic Error: %s", message)
        if is_debug():
            self.message = self.__class__.message + str(message)
        else:
            self.message = self.__class__.message + HIDDEN_LOG
