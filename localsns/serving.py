import logging
from typing import TYPE_CHECKING

from rolo import Request, Response
from rolo.routing import Router
from rolo.routing.handler import Handler, handler_dispatcher
from werkzeug import run_simple
from werkzeug.wrappers import Request as WerkzeugRequest

from localsns import config
from localsns.api import RequestContext
from localsns.config import HostAndPort
from localsns.provider import SnsProvider
from localsns.skeleton import Skeleton

if TYPE_CHECKING:
    from _typeshed.wsgi import WSGIApplication

LOG = logging.getLogger(__name__)


class SnsRouter(Router[Handler]):
    """
    Router exposing the query protocol endpoint: form-encoded POST requests to ``/``. Any other path or method is
    answered by werkzeug with a 404 or 405.
    """

    def __init__(self, provider: SnsProvider):
        super().__init__(dispatcher=handler_dispatcher())
        self.provider = provider
        self.skeleton = Skeleton(provider)
        self.add("/", self.handle_request, methods=["POST"])

    def handle_request(self, request: Request) -> Response:
        return self.skeleton.invoke(RequestContext(request))

    def wsgi(self) -> "WSGIApplication":
        @WerkzeugRequest.application
        def _wsgi(request: WerkzeugRequest) -> Response:
            return self.dispatch(request)

        return _wsgi


def create_app(provider: SnsProvider = None) -> "WSGIApplication":
    return SnsRouter(provider or SnsProvider()).wsgi()


def serve(
    app: "WSGIApplication",
    listen: HostAndPort = None,
    use_reloader: bool = False,
    **kwargs,
) -> None:
    """
    Serve the WSGI application through werkzeug.

    :param app: the application to serve
    :param listen: the address to listen on, defaults to ``GATEWAY_LISTEN``
    :param use_reloader: whether to autoreload the server on changes
    :param kwargs: any other arguments that can be passed to `werkzeug.run_simple`
    """
    listen = listen or config.GATEWAY_LISTEN
    kwargs["threaded"] = kwargs.get("threaded", True)  # make sure requests don't block each other
    LOG.info("listening on %s", listen)
    run_simple(listen.host, listen.port, app, use_reloader=use_reloader, **kwargs)
