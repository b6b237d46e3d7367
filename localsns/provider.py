import logging
from typing import Dict, List, Optional

from localsns.api import (
    InvalidParameterException,
    NotFoundException,
    RequestContext,
    handler,
)
from localsns.arns import (
    create_subscription_arn,
    sns_topic_arn,
    topic_arn_from_subscription_arn,
    topic_name_from_arn,
)
from localsns.models import TOPIC_ATTRIBUTE_FIELDS, SnsMessage, Subscription, Topic
from localsns.protocol.parser import AttributeEntry, SnsRequest, Tag
from localsns.publisher import PublishDispatcher, SnsPublishContext
from localsns.registry import TopicRegistry

LOG = logging.getLogger(__name__)


def _require(value: Optional[str], message: str) -> str:
    if value is None:
        raise InvalidParameterException(message)
    return value


def _supplied_entries(entries: Optional[List[AttributeEntry]]) -> List[AttributeEntry]:
    # placeholders for skipped indices carry an empty key
    return [entry for entry in entries or [] if entry["key"]]


def _merge_tags(topic: Topic, tags: Optional[List[Tag]]) -> None:
    for tag in tags or []:
        if tag["Key"]:
            topic.tags[tag["Key"]] = tag["Value"]


class SnsProvider:
    """
    Implements the supported actions on top of a ``TopicRegistry``. Messages are handed to the ``PublishDispatcher``
    for delivery.
    """

    def __init__(self, registry: TopicRegistry = None, publisher: PublishDispatcher = None):
        self.registry = registry if registry is not None else TopicRegistry()
        self.publisher = publisher if publisher is not None else PublishDispatcher()

    def on_before_stop(self):
        self.publisher.shutdown()

    @handler("CreateTopic")
    def create_topic(self, context: RequestContext, request: SnsRequest) -> Dict:
        name = _require(request.name, "Missing Topic Name")

        attributes = _supplied_entries(request.attributes)
        for entry in attributes:
            if entry["key"] not in TOPIC_ATTRIBUTE_FIELDS:
                raise InvalidParameterException("Attribute not supported")

        topic_arn = sns_topic_arn(name)
        with self.registry.get_or_create(name, lambda: Topic(name=name, arn=topic_arn)) as topic:
            for entry in attributes:
                topic.set_attribute(entry["key"], entry["value"])
            _merge_tags(topic, request.tags)

        return {"TopicArn": topic_arn}

    @handler("DeleteTopic")
    def delete_topic(self, context: RequestContext, request: SnsRequest) -> None:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")
        if self.registry.remove(topic_name_from_arn(topic_arn)):
            LOG.debug("Deleted topic %s", topic_arn)

    @handler("ListTopics")
    def list_topics(self, context: RequestContext, request: SnsRequest) -> Dict:
        # pagination is not supported, all topics are returned at once
        topics = [{"TopicArn": topic.arn} for topic in self.registry.iter()]
        return {"Topics": topics, "NextToken": ""}

    @handler("Subscribe")
    def subscribe(self, context: RequestContext, request: SnsRequest) -> Dict:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")
        endpoint = _require(request.endpoint, "Missing endpoint")
        protocol = _require(request.protocol, "Missing protocol")

        with self.registry.get_mut(topic_name_from_arn(topic_arn)) as topic:
            if topic is None:
                raise NotFoundException("Topic not found")
            subscription = Subscription(
                subscription_arn=create_subscription_arn(topic_arn),
                arn=topic_arn,
                endpoint=endpoint,
                protocol=protocol,
            )
            topic.subscriptions.append(subscription)

        LOG.debug("Subscribed %s endpoint %s to %s", protocol, endpoint, topic_arn)
        return {"SubscriptionArn": subscription.subscription_arn}

    @handler("Unsubscribe")
    def unsubscribe(self, context: RequestContext, request: SnsRequest) -> None:
        subscription_arn = _require(request.subscription_arn, "Missing Subscription ARN")
        topic_name = topic_name_from_arn(topic_arn_from_subscription_arn(subscription_arn))

        with self.registry.get_mut(topic_name) as topic:
            if topic is None:
                raise NotFoundException("Topic not found")
            topic.subscriptions = [
                subscription
                for subscription in topic.subscriptions
                if subscription.subscription_arn != subscription_arn
            ]

    @handler("ListSubscriptions")
    def list_subscriptions(self, context: RequestContext, request: SnsRequest) -> Dict:
        subscriptions = [
            subscription.to_member()
            for topic in self.registry.iter()
            for subscription in topic.subscriptions
        ]
        return {"Subscriptions": subscriptions}

    @handler("ListSubscriptionsByTopic")
    def list_subscriptions_by_topic(self, context: RequestContext, request: SnsRequest) -> Dict:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")

        with self.registry.get(topic_name_from_arn(topic_arn)) as topic:
            if topic is None:
                raise NotFoundException("Topic not found")
            subscriptions = [subscription.to_member() for subscription in topic.subscriptions]

        return {"Subscriptions": subscriptions}

    @handler("GetSubscriptionAttributes")
    def get_subscription_attributes(self, context: RequestContext, request: SnsRequest) -> Dict:
        subscription_arn = _require(request.subscription_arn, "Missing Subscription ARN")

        subscription = self.registry.find_subscription(subscription_arn)
        if subscription is None:
            raise NotFoundException("Subscription not found")

        return {"Attributes": subscription.get_attributes()}

    @handler("Publish")
    def publish(self, context: RequestContext, request: SnsRequest) -> Dict:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")
        message = SnsMessage(
            message=_require(request.message, "Missing message"),
            subject=request.subject,
        )

        # only the subscription list is read under the topic lock, delivery happens outside of it
        with self.registry.get(topic_name_from_arn(topic_arn)) as topic:
            if topic is None:
                raise NotFoundException("Topic does not exist")
            subscriptions = list(topic.subscriptions)

        self.publisher.publish_to_topic(
            SnsPublishContext(message=message, topic_arn=topic_arn), subscriptions
        )
        return {"MessageId": message.message_id}

    @handler("GetTopicAttributes")
    def get_topic_attributes(self, context: RequestContext, request: SnsRequest) -> Dict:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")

        with self.registry.get(topic_name_from_arn(topic_arn)) as topic:
            if topic is None:
                raise NotFoundException("Topic not found")
            attributes = topic.get_attributes()

        return {"Attributes": attributes}

    @handler("SetTopicAttributes")
    def set_topic_attributes(self, context: RequestContext, request: SnsRequest) -> None:
        topic_arn = _require(request.topic_arn, "Missing Topic ARN")
        attribute_name = _require(request.attribute_name, "Missing Attribute Name")
        attribute_value = _require(request.attribute_value, "Missing Attribute Value")

        with self.registry.get_mut(topic_name_from_arn(topic_arn)) as topic:
            if topic is None:
                raise NotFoundException("Topic not found")
            if attribute_name not in TOPIC_ATTRIBUTE_FIELDS:
                raise InvalidParameterException("Attribute not supported")
            topic.set_attribute(attribute_name, attribute_value)

    @handler("ListTagsForResource")
    def list_tags_for_resource(self, context: RequestContext, request: SnsRequest) -> Dict:
        resource_arn = _require(request.resource_arn, "Missing Resource Arn")

        with self.registry.get(topic_name_from_arn(resource_arn)) as topic:
            if topic is None:
                raise NotFoundException("Resource not found")
            tags = [{"Key": key, "Value": value} for key, value in topic.tags.items()]

        return {"Tags": tags}

    @handler("TagResource")
    def tag_resource(self, context: RequestContext, request: SnsRequest) -> Dict:
        resource_arn = _require(request.resource_arn, "Missing Resource Arn")
        if request.tags is None:
            raise InvalidParameterException("Missing Tags")

        with self.registry.get_mut(topic_name_from_arn(resource_arn)) as topic:
            if topic is None:
                raise NotFoundException("Resource not found")
            _merge_tags(topic, request.tags)

        return {}

    @handler("UntagResource")
    def untag_resource(self, context: RequestContext, request: SnsRequest) -> Dict:
        resource_arn = _require(request.resource_arn, "Missing Resource Arn")
        if request.tag_keys is None:
            raise InvalidParameterException("Missing Tag Keys")

        with self.registry.get_mut(topic_name_from_arn(resource_arn)) as topic:
            if topic is None:
                raise NotFoundException("Resource not found")
            for key in request.tag_keys:
                topic.tags.pop(key, None)

        return {}
