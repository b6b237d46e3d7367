from typing import Dict, List
from urllib.parse import urlencode

import pytest
import xmltodict
from werkzeug.test import Client

from localsns.arns import short_uid
from localsns.clients import SqsClientCache
from localsns.constants import DEFAULT_REGION, TEST_AWS_ACCESS_KEY_ID, TEST_AWS_SECRET_ACCESS_KEY
from localsns.provider import SnsProvider
from localsns.publisher import PublishDispatcher
from localsns.registry import TopicRegistry
from localsns.serving import create_app


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets the default credentials and region for all unit tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", TEST_AWS_ACCESS_KEY_ID)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", TEST_AWS_SECRET_ACCESS_KEY)
    monkeypatch.setenv("AWS_DEFAULT_REGION", DEFAULT_REGION)


class RecordingSqsClient:
    """Stands in for a boto3 SQS client and records all sent messages."""

    def __init__(self, endpoint_url: str, fail: bool = False):
        self.endpoint_url = endpoint_url
        self.fail = fail
        self.sent_messages: List[Dict[str, str]] = []

    def send_message(self, QueueUrl: str, MessageBody: str):
        if self.fail:
            raise ConnectionError(f"could not connect to {self.endpoint_url}")
        self.sent_messages.append({"QueueUrl": QueueUrl, "MessageBody": MessageBody})
        return {"MessageId": short_uid()}


class RecordingClientFactory:
    def __init__(self):
        self.created: List[RecordingSqsClient] = []
        # endpoints whose clients fail on send
        self.failing_endpoints = set()
        # endpoints for which no client can be created
        self.invalid_endpoints = set()

    def __call__(self, endpoint_url: str) -> RecordingSqsClient:
        if endpoint_url in self.invalid_endpoints:
            raise ValueError(f"invalid endpoint: {endpoint_url}")
        client = RecordingSqsClient(endpoint_url, fail=endpoint_url in self.failing_endpoints)
        self.created.append(client)
        return client

    def sent_messages(self) -> List[Dict[str, str]]:
        return [message for client in self.created for message in client.sent_messages]


@pytest.fixture
def client_factory() -> RecordingClientFactory:
    return RecordingClientFactory()


@pytest.fixture
def sqs_clients(client_factory) -> SqsClientCache:
    return SqsClientCache(client_factory=client_factory)


@pytest.fixture
def publisher(sqs_clients):
    dispatcher = PublishDispatcher(clients=sqs_clients, num_thread=2)
    yield dispatcher
    dispatcher.shutdown(wait=True)


@pytest.fixture
def registry() -> TopicRegistry:
    return TopicRegistry()


@pytest.fixture
def provider(registry, publisher) -> SnsProvider:
    return SnsProvider(registry=registry, publisher=publisher)


@pytest.fixture
def sns_client(provider) -> Client:
    return Client(create_app(provider))


@pytest.fixture
def sns_call(sns_client):
    """
    Factory fixture which posts the given form parameters and returns the response together with the parsed XML body.
    """

    def _call(action: str, **params):
        response = sns_client.post(
            "/",
            data=urlencode({"Action": action, **params}),
            content_type="application/x-www-form-urlencoded",
        )
        document = xmltodict.parse(response.data, force_list=("member", "entry"))
        return response, document

    return _call


@pytest.fixture
def create_topic(sns_call):
    def _create(name: str = None, **params) -> str:
        name = name or f"topic-{short_uid()}"
        response, document = sns_call("CreateTopic", Name=name, **params)
        assert response.status_code == 200
        return document["CreateTopicResponse"]["CreateTopicResult"]["TopicArn"]

    return _create
