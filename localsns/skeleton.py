import inspect
import logging
from typing import Any, Callable, Dict, NamedTuple, Optional, Union

from rolo import Response

from localsns.api import (
    InvalidActionException,
    RequestContext,
    ServiceException,
)
from localsns.protocol.parser import SnsRequest, parse_http_request
from localsns.protocol.serializer import create_serializer

LOG = logging.getLogger(__name__)

ServiceResponse = Optional[Dict[str, Any]]
ServiceRequestHandler = Callable[[RequestContext, SnsRequest], Union[ServiceResponse, Response]]
DispatchTable = Dict[str, ServiceRequestHandler]


class HandlerAttributes(NamedTuple):
    """
    Holder object of the attributes added to a function by the @handler decorator.
    """

    function_name: str
    operation: str


def create_dispatch_table(delegate: object) -> DispatchTable:
    """
    Creates a dispatch table for a given object. First, the entire class tree of the object is scanned to find any
    functions that are decorated with @handler. It then resolves those functions on the delegate.
    """
    # reverse class tree so that inherited functions overwrite parent functions
    cls_tree = reversed(list(inspect.getmro(delegate.__class__)))
    handlers: Dict[str, HandlerAttributes] = {}
    for cls in cls_tree:
        if cls == object:
            continue

        for name, fn in inspect.getmembers(cls, inspect.isfunction):
            try:
                # attributes come from operation_marker in @handler wrapper
                handlers[fn.operation] = HandlerAttributes(fn.__name__, fn.operation)
            except AttributeError:
                pass

    dispatch_table: DispatchTable = {}
    for handler in handlers.values():
        dispatch_table[handler.operation] = ServiceRequestDispatcher(
            getattr(delegate, handler.function_name), operation=handler.operation
        )

    return dispatch_table


class ServiceRequestDispatcher:
    fn: Callable
    operation: str

    def __init__(self, fn: Callable, operation: str):
        self.fn = fn
        self.operation = operation

    def __call__(
        self, context: RequestContext, request: SnsRequest
    ) -> Union[ServiceResponse, Response]:
        return self.fn(context, request)


class Skeleton:
    """
    Decodes incoming requests, invokes the handler of the requested action, and serializes the result (or the raised
    ServiceException) into a response.
    """

    dispatch_table: DispatchTable

    def __init__(self, implementation: Union[Any, DispatchTable]):
        self.serializer = create_serializer()

        if isinstance(implementation, dict):
            self.dispatch_table = implementation
        else:
            self.dispatch_table = create_dispatch_table(implementation)

    def invoke(self, context: RequestContext) -> Response:
        try:
            if context.service_request is None:
                context.service_request = parse_http_request(context.request)
            instance = context.service_request
            context.operation = instance.action

            if instance.action not in self.dispatch_table:
                LOG.info("Received request for unsupported action %s", instance.action)
                raise InvalidActionException()

            return self.dispatch_request(context, instance)
        except ServiceException as e:
            return self.on_service_exception(context, e)

    def dispatch_request(self, context: RequestContext, instance: SnsRequest) -> Response:
        operation = context.operation
        handler = self.dispatch_table[operation]

        result = handler(context, instance)

        # if the handler returned an HTTP response, forego serialization and return immediately
        if isinstance(result, Response):
            return result

        return self.serializer.serialize_to_response(result, operation)

    def on_service_exception(self, context: RequestContext, exception: ServiceException) -> Response:
        """
        Called by invoke if the handler of the operation raised a ServiceException.

        :param context: the request context
        :param exception: the exception that was raised
        :return: a Response object
        """
        LOG.debug("%s failed with %s: %s", context.operation, exception.code, exception.message)
        return self.serializer.serialize_error_to_response(exception)
