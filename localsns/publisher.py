import abc
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from localsns.clients import SqsClientCache
from localsns.models import SQS_PROTOCOL, SnsMessage, Subscription

LOG = logging.getLogger(__name__)


@dataclass
class SnsPublishContext:
    message: SnsMessage
    topic_arn: str


class TopicPublisher(abc.ABC):
    """
    The TopicPublisher is responsible for delivering a message to one subscription of a topic.
    Delivery happens in two steps: `prepare` runs on the publishing thread and resolves whatever the delivery needs
    (f.e. the client of the downstream service), `publish` then runs on a worker thread and performs the I/O.
    Each subclass implements `_publish` using the subscription's protocol.
    """

    def prepare(self, context: SnsPublishContext, subscriber: Subscription) -> Any:
        """
        Resolves the delivery target of the subscription. Errors are raised to the caller.

        :return: the target passed on to `publish`, None if the protocol needs none
        """
        return None

    def publish(self, context: SnsPublishContext, subscriber: Subscription, target: Any = None):
        """
        Wraps the actual delivery, so that any error is logged instead of being swallowed by the executor the
        method is passed to. Delivery errors are never reported back to the publisher of the message.

        :param context: the SnsPublishContext created by the caller
        :param subscriber: the subscription to deliver to
        :param target: the result of `prepare` for this subscription
        """
        try:
            self._publish(context=context, subscriber=subscriber, target=target)
        except Exception as e:
            self.log_failure(context, subscriber, e)

    def log_failure(self, context: SnsPublishContext, subscriber: Subscription, error: Exception):
        LOG.error(
            "Failed to deliver message %s to %s endpoint %s: %s",
            context.message.message_id,
            subscriber.protocol,
            subscriber.endpoint,
            error,
            exc_info=LOG.isEnabledFor(logging.DEBUG),
        )

    @abc.abstractmethod
    def _publish(self, context: SnsPublishContext, subscriber: Subscription, target: Any):
        raise NotImplementedError


class SqsTopicPublisher(TopicPublisher):
    """
    Sends the raw message body to the queue URL of the subscription. The client is looked up (and created on the
    first use of an endpoint) in `prepare`, so it is cached by the time the publishing request returns.
    """

    def __init__(self, clients: SqsClientCache):
        self.clients = clients

    def prepare(self, context: SnsPublishContext, subscriber: Subscription):
        return self.clients.get_client(subscriber.endpoint)

    def _publish(self, context: SnsPublishContext, subscriber: Subscription, target: Any):
        queue_url = subscriber.endpoint
        target.send_message(QueueUrl=queue_url, MessageBody=context.message.message)
        LOG.info("Message sent to SQS queue: %s", queue_url)


class LoggingTopicPublisher(TopicPublisher):
    """
    Used for all protocols without an actual delivery mechanism (http, email, ...). The message is only logged.
    """

    def _publish(self, context: SnsPublishContext, subscriber: Subscription, target: Any):
        LOG.info("Sending message %s to endpoint %s", context.message, subscriber.endpoint)


class PublishDispatcher:
    """
    The PublishDispatcher is responsible for dispatching the delivery of messages asynchronously to worker
    threads via a `ThreadPoolExecutor`, depending on the protocol of each subscription.
    """

    topic_notifiers: Dict[str, TopicPublisher]
    default_notifier: TopicPublisher

    def __init__(self, clients: Optional[SqsClientCache] = None, num_thread: int = 10):
        self.clients = clients if clients is not None else SqsClientCache()
        self.topic_notifiers = {SQS_PROTOCOL: SqsTopicPublisher(self.clients)}
        self.default_notifier = LoggingTopicPublisher()
        self.executor = ThreadPoolExecutor(num_thread, thread_name_prefix="sns_pub")

    def shutdown(self, wait: bool = False):
        self.executor.shutdown(wait=wait)

    def publish_to_topic(
        self, ctx: SnsPublishContext, subscriptions: List[Subscription]
    ) -> List[Future]:
        """
        Walks the given subscriptions in order, resolves the delivery target of each one on the calling thread, and
        submits the delivery to the executor. A subscription whose target cannot be resolved is logged and skipped.
        The subscriptions are a snapshot taken by the caller, no registry lock may be held while calling this method.

        :return: the futures of the submitted deliveries
        """
        futures = []
        for subscriber in subscriptions:
            notifier = self.topic_notifiers.get(subscriber.protocol, self.default_notifier)
            LOG.debug(
                "Topic '%s' publishing '%s' to subscribed '%s' with protocol '%s' (subscription '%s')",
                ctx.topic_arn,
                ctx.message.message_id,
                subscriber.endpoint,
                subscriber.protocol,
                subscriber.subscription_arn,
            )
            try:
                target = notifier.prepare(ctx, subscriber)
            except Exception as e:
                notifier.log_failure(ctx, subscriber, e)
                continue
            futures.append(
                self.executor.submit(
                    notifier.publish, context=ctx, subscriber=subscriber, target=target
                )
            )
        return futures
