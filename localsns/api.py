import functools
from typing import TYPE_CHECKING, Optional

from werkzeug.wrappers import Request

if TYPE_CHECKING:
    from localsns.protocol.parser import SnsRequest


class ServiceException(Exception):
    """
    An exception that indicates that a service error occurred.
    These exceptions, when raised during the execution of a handler, will be serialized and sent to the client.
    Do not use this exception directly (use the subclasses below or CommonServiceException instead).
    """

    code: str = "InternalFailure"
    status_code: int = 500
    message: str = ""

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class CommonServiceException(ServiceException):
    """
    An exception which can be raised within a handler with an arbitrary error code.
    """

    def __init__(self, code: str, message: str, status_code: int = 400):
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class InvalidParameterException(ServiceException):
    code: str = "InvalidParameter"
    status_code: int = 400


class InvalidActionException(ServiceException):
    code: str = "InvalidAction"
    status_code: int = 400
    message: str = "Action not supported"


class NotFoundException(ServiceException):
    code: str = "NotFound"
    status_code: int = 404


class RequestContext:
    request: Optional[Request]
    operation: Optional[str]
    service_request: Optional["SnsRequest"]

    def __init__(self, request: Request = None) -> None:
        super().__init__()
        self.request = request
        self.operation = None
        self.service_request = None


def handler(operation: str = None):
    """
    Decorator that indicates that the given function is a handler for the given action. Handlers are invoked with
    the request context and the decoded request.
    """

    def wrapper(fn):
        @functools.wraps(fn)
        def operation_marker(*args, **kwargs):
            return fn(*args, **kwargs)

        operation_marker.operation = operation

        return operation_marker

    return wrapper
