import pytest

from localsns.arns import (
    create_subscription_arn,
    sns_topic_arn,
    topic_arn_from_subscription_arn,
    topic_name_from_arn,
)
from localsns.constants import DEFAULT_TOPIC_POLICY
from localsns.models import TOPIC_ATTRIBUTE_FIELDS, SnsMessage, Subscription, Topic


@pytest.fixture
def topic() -> Topic:
    return Topic(name="my-topic", arn=sns_topic_arn("my-topic"))


class TestArns:
    def test_topic_arn(self):
        assert sns_topic_arn("my-topic") == "arn:aws:sns:us-east-1:000000000000:my-topic"
        assert topic_name_from_arn(sns_topic_arn("my-topic")) == "my-topic"
        assert topic_name_from_arn("my-topic") == "my-topic"

    def test_subscription_arn(self):
        topic_arn = sns_topic_arn("my-topic")
        subscription_arn = create_subscription_arn(topic_arn)
        assert subscription_arn.startswith(f"{topic_arn}:")
        assert subscription_arn != create_subscription_arn(topic_arn)
        assert topic_arn_from_subscription_arn(subscription_arn) == topic_arn

    def test_subscription_arn_without_token(self):
        assert topic_arn_from_subscription_arn("no-colons") == ""


class TestTopic:
    def test_default_attributes(self, topic):
        assert topic.get_attributes() == [
            ("TopicArn", "arn:aws:sns:us-east-1:000000000000:my-topic"),
            ("Policy", DEFAULT_TOPIC_POLICY),
            ("FirehoseSuccessFeedbackSampleRate", "0"),
            ("SQSSuccessFeedbackSampleRate", "0"),
            ("HTTPSuccessFeedbackSampleRate", "0"),
            ("ApplicationSuccessFeedbackSampleRate", "0"),
            ("LambdaSuccessFeedbackSampleRate", "0"),
            ("SubscriptionsConfirmed", "0"),
            ("SubscriptionsPending", "0"),
            ("SubscriptionsDeleted", "0"),
        ]

    def test_set_attributes_are_rendered(self, topic):
        topic.set_attribute("DisplayName", "My Topic")
        topic.set_attribute("Policy", "{}")
        topic.set_attribute("SQSSuccessFeedbackSampleRate", "50")
        topic.set_attribute("FifoTopic", "true")

        attributes = dict(topic.get_attributes())
        assert attributes["DisplayName"] == "My Topic"
        assert attributes["Policy"] == "{}"
        assert attributes["SQSSuccessFeedbackSampleRate"] == "50"
        assert attributes["FifoTopic"] == "true"
        assert "KmsMasterKeyId" not in attributes

        names = [name for name, _ in topic.get_attributes()]
        assert names.index("DisplayName") < names.index("Policy") < names.index("FifoTopic")

    def test_every_whitelisted_attribute_can_be_set(self, topic):
        for attribute_name in TOPIC_ATTRIBUTE_FIELDS:
            topic.set_attribute(attribute_name, f"value-{attribute_name}")
        attributes = dict(topic.get_attributes())
        for attribute_name in TOPIC_ATTRIBUTE_FIELDS:
            assert attributes[attribute_name] == f"value-{attribute_name}"

    def test_subscription_count(self, topic):
        topic.subscriptions.append(
            Subscription(f"{topic.arn}:1", topic.arn, "http://example.com", "http")
        )
        assert dict(topic.get_attributes())["SubscriptionsConfirmed"] == "1"


def test_subscription_attributes():
    subscription = Subscription("arn:sub", "arn:topic", "http://example.com", "http")
    assert subscription.get_attributes() == [
        ("SubscriptionArn", "arn:sub"),
        ("TopicArn", "arn:topic"),
        ("Owner", "000000000000"),
        ("ConfirmationWasAuthenticated", "true"),
        ("PendingConfirmation", "false"),
        ("Protocol", "http"),
        ("Endpoint", "http://example.com"),
    ]


def test_message_ids_are_unique():
    assert SnsMessage(message="a").message_id != SnsMessage(message="a").message_id
