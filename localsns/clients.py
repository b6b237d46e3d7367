"""
Cache of boto3 SQS clients used to deliver messages to queue subscriptions.

Clients are keyed by the base endpoint (scheme, host and port) of the queue URL, so all queues living on the same
downstream host share a single client.
"""
import logging
import os
import threading
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from boto3.session import Session
from botocore.client import BaseClient
from botocore.config import Config

from localsns import config
from localsns.constants import (
    DEFAULT_SQS_PORT,
    TEST_AWS_ACCESS_KEY_ID,
    TEST_AWS_SECRET_ACCESS_KEY,
)

LOG = logging.getLogger(__name__)

MAX_POOL_CONNECTIONS = 50

SCHEME_DEFAULT_PORTS = {"http": 80, "https": 443}

ClientFactory = Callable[[str], BaseClient]


def base_endpoint(endpoint: str) -> str:
    """
    Returns the base endpoint of the given queue URL, f.e. ``http://localhost:4566/000000000000/my-queue`` turns into
    ``http://localhost:4566``. The port defaults to 4566 if the URL does not specify one, or specifies the default
    port of its scheme. If the endpoint cannot be parsed as a URL, the configured default endpoint is returned.
    """
    try:
        parsed = urlparse(endpoint)
        port = parsed.port
    except ValueError:
        return config.SQS_DEFAULT_ENDPOINT

    host = parsed.hostname
    if not parsed.scheme or not host:
        return config.SQS_DEFAULT_ENDPOINT
    if ":" in host:
        host = f"[{host}]"
    # the default port of the scheme counts as unspecified
    if port == SCHEME_DEFAULT_PORTS.get(parsed.scheme):
        port = None
    return f"{parsed.scheme}://{host}:{port or DEFAULT_SQS_PORT}"


class SqsClientCache:
    """
    Concurrent map of base endpoint to SQS client. Clients are created lazily on the first lookup of their endpoint.
    Two threads missing the cache at the same time may both create a client, in which case the last one stored wins.
    """

    _clients: Dict[str, BaseClient]

    def __init__(self, client_factory: Optional[ClientFactory] = None, session: Session = None):
        self._clients = {}
        self._session = session
        self._client_factory = client_factory or self._create_client
        # boto3 sessions are not thread safe, so creating clients from the shared session is serialized
        self._create_client_lock = threading.RLock()

    def get_client(self, endpoint: str) -> BaseClient:
        endpoint_url = base_endpoint(endpoint)
        client = self._clients.get(endpoint_url)
        if client is None:
            LOG.debug("Creating SQS client for endpoint %s", endpoint_url)
            client = self._client_factory(endpoint_url)
            self._clients[endpoint_url] = client
        return client

    def _create_client(self, endpoint_url: str) -> BaseClient:
        with self._create_client_lock:
            if self._session is None:
                self._session = Session()
            return self._session.client(
                service_name="sqs",
                region_name=config.AWS_REGION,
                endpoint_url=endpoint_url,
                aws_access_key_id=os.environ.get("AWS_ACCESS_KEY_ID") or TEST_AWS_ACCESS_KEY_ID,
                aws_secret_access_key=os.environ.get("AWS_SECRET_ACCESS_KEY")
                or TEST_AWS_SECRET_ACCESS_KEY,
                config=Config(max_pool_connections=MAX_POOL_CONNECTIONS),
            )

    def keys(self) -> List[str]:
        return list(self._clients.keys())

    def __contains__(self, endpoint_url: str) -> bool:
        return endpoint_url in self._clients

    def __len__(self) -> int:
        return len(self._clients)
