import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from localsns.arns import long_uid
from localsns.constants import DEFAULT_ACCOUNT_ID, DEFAULT_TOPIC_POLICY

# the protocol whose subscriptions are delivered to a downstream queue service
SQS_PROTOCOL = "sqs"

# attribute name -> Topic field, the set of attributes that can be changed through SetTopicAttributes
TOPIC_ATTRIBUTE_FIELDS: Dict[str, str] = {
    "DisplayName": "display_name",
    "Policy": "policy",
    "DeliveryPolicy": "delivery_policy",
    "TracingConfig": "tracing_config",
    "FirehoseSuccessFeedbackSampleRate": "firehose_success_feedback_sample_rate",
    "FirehoseFailureFeedbackRoleArn": "firehose_failure_feedback_role_arn",
    "FirehoseSuccessFeedbackRoleArn": "firehose_success_feedback_role_arn",
    "HTTPFailureFeedbackRoleArn": "http_failure_feedback_role_arn",
    "SQSSuccessFeedbackSampleRate": "sqs_success_feedback_sample_rate",
    "SQSFailureFeedbackRoleArn": "sqs_failure_feedback_role_arn",
    "SQSSuccessFeedbackRoleArn": "sqs_success_feedback_role_arn",
    "HTTPSuccessFeedbackSampleRate": "http_success_feedback_sample_rate",
    "HTTPSuccessFeedbackRoleArn": "http_success_feedback_role_arn",
    "ApplicationSuccessFeedbackSampleRate": "application_success_feedback_sample_rate",
    "ApplicationFailureFeedbackRoleArn": "application_failure_feedback_role_arn",
    "ApplicationSuccessFeedbackRoleArn": "application_success_feedback_role_arn",
    "LambdaSuccessFeedbackSampleRate": "lambda_success_feedback_sample_rate",
    "LambdaFailureFeedbackRoleArn": "lambda_failure_feedback_role_arn",
    "LambdaSuccessFeedbackRoleArn": "lambda_success_feedback_role_arn",
    "KmsMasterKeyId": "kms_master_key_id",
    "SignatureVersion": "signature_version",
    "ContentBasedDeduplication": "content_based_deduplication",
    "FifoTopic": "fifo_topic",
    "ArchivePolicy": "archive_policy",
    "FifoThroughputScope": "fifo_throughput_scope",
}

# attributes rendered with a value even if they were never set
TOPIC_ATTRIBUTE_DEFAULTS: Dict[str, str] = {
    "Policy": DEFAULT_TOPIC_POLICY,
    "FirehoseSuccessFeedbackSampleRate": "0",
    "SQSSuccessFeedbackSampleRate": "0",
    "HTTPSuccessFeedbackSampleRate": "0",
    "ApplicationSuccessFeedbackSampleRate": "0",
    "LambdaSuccessFeedbackSampleRate": "0",
}

# order in which GetTopicAttributes renders the stored attributes (after TopicArn)
TOPIC_ATTRIBUTE_ORDER: Tuple[str, ...] = (
    "DisplayName",
    "Policy",
    "DeliveryPolicy",
    "TracingConfig",
    "FirehoseFailureFeedbackRoleArn",
    "FirehoseSuccessFeedbackRoleArn",
    "FirehoseSuccessFeedbackSampleRate",
    "HTTPFailureFeedbackRoleArn",
    "SQSFailureFeedbackRoleArn",
    "SQSSuccessFeedbackRoleArn",
    "SQSSuccessFeedbackSampleRate",
    "HTTPSuccessFeedbackRoleArn",
    "HTTPSuccessFeedbackSampleRate",
    "ApplicationFailureFeedbackRoleArn",
    "ApplicationSuccessFeedbackRoleArn",
    "ApplicationSuccessFeedbackSampleRate",
    "LambdaFailureFeedbackRoleArn",
    "LambdaSuccessFeedbackRoleArn",
    "LambdaSuccessFeedbackSampleRate",
    "KmsMasterKeyId",
    "SignatureVersion",
    "ContentBasedDeduplication",
    "FifoTopic",
    "ArchivePolicy",
    "FifoThroughputScope",
)


@dataclass
class Subscription:
    subscription_arn: str
    # ARN of the parent topic
    arn: str
    endpoint: str
    protocol: str

    def to_member(self) -> Dict[str, str]:
        return {
            "TopicArn": self.arn,
            "Protocol": self.protocol,
            "SubscriptionArn": self.subscription_arn,
            "Owner": DEFAULT_ACCOUNT_ID,
            "Endpoint": self.endpoint,
        }

    def get_attributes(self) -> List[Tuple[str, str]]:
        return [
            ("SubscriptionArn", self.subscription_arn),
            ("TopicArn", self.arn),
            ("Owner", DEFAULT_ACCOUNT_ID),
            ("ConfirmationWasAuthenticated", "true"),
            ("PendingConfirmation", "false"),
            ("Protocol", self.protocol),
            ("Endpoint", self.endpoint),
        ]


@dataclass
class Topic:
    name: str
    arn: str
    display_name: Optional[str] = None
    policy: Optional[str] = None
    delivery_policy: Optional[str] = None
    tracing_config: Optional[str] = None
    firehose_failure_feedback_role_arn: Optional[str] = None
    firehose_success_feedback_role_arn: Optional[str] = None
    firehose_success_feedback_sample_rate: Optional[str] = None
    http_failure_feedback_role_arn: Optional[str] = None
    sqs_failure_feedback_role_arn: Optional[str] = None
    sqs_success_feedback_role_arn: Optional[str] = None
    sqs_success_feedback_sample_rate: Optional[str] = None
    http_success_feedback_role_arn: Optional[str] = None
    http_success_feedback_sample_rate: Optional[str] = None
    application_failure_feedback_role_arn: Optional[str] = None
    application_success_feedback_role_arn: Optional[str] = None
    application_success_feedback_sample_rate: Optional[str] = None
    lambda_failure_feedback_role_arn: Optional[str] = None
    lambda_success_feedback_role_arn: Optional[str] = None
    lambda_success_feedback_sample_rate: Optional[str] = None
    kms_master_key_id: Optional[str] = None
    signature_version: Optional[str] = None
    content_based_deduplication: Optional[str] = None
    fifo_topic: Optional[str] = None
    archive_policy: Optional[str] = None
    fifo_throughput_scope: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)
    subscriptions: List[Subscription] = field(default_factory=list)

    def set_attribute(self, attribute_name: str, attribute_value: str) -> None:
        """
        Sets a single attribute by its wire name. The caller is expected to check the name against
        ``TOPIC_ATTRIBUTE_FIELDS`` first.
        """
        setattr(self, TOPIC_ATTRIBUTE_FIELDS[attribute_name], attribute_value)

    def get_attributes(self) -> List[Tuple[str, str]]:
        """
        Returns the ordered attribute list of the topic. Unset attributes are omitted, except for those
        that have a default value.
        """
        attributes = [("TopicArn", self.arn)]
        for attribute_name in TOPIC_ATTRIBUTE_ORDER:
            value = getattr(self, TOPIC_ATTRIBUTE_FIELDS[attribute_name])
            if value is None:
                value = TOPIC_ATTRIBUTE_DEFAULTS.get(attribute_name)
            if value is not None:
                attributes.append((attribute_name, value))
        attributes += [
            ("SubscriptionsConfirmed", str(len(self.subscriptions))),
            ("SubscriptionsPending", "0"),
            ("SubscriptionsDeleted", "0"),
        ]
        return attributes

    def get_subscription(self, subscription_arn: str) -> Optional[Subscription]:
        for subscription in self.subscriptions:
            if subscription.subscription_arn == subscription_arn:
                return subscription
        return None

    def copy(self) -> "Topic":
        return copy.deepcopy(self)


@dataclass
class SnsMessage:
    message: str
    subject: Optional[str] = None
    message_id: str = field(default_factory=long_uid)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
