"""Helpers to build and take apart the ARNs handed out by the emulator."""
import uuid

from localsns.constants import DEFAULT_ACCOUNT_ID, DEFAULT_REGION


def long_uid() -> str:
    return str(uuid.uuid4())


def short_uid() -> str:
    return long_uid()[0:8]


def sns_topic_arn(topic_name: str) -> str:
    return f"arn:aws:sns:{DEFAULT_REGION}:{DEFAULT_ACCOUNT_ID}:{topic_name}"


def topic_name_from_arn(arn: str) -> str:
    """
    Returns the registry key of the topic referenced by the given ARN, which is its last colon-delimited segment.
    The overall shape of the ARN is not validated.
    """
    return arn.rsplit(":", 1)[-1]


def create_subscription_arn(topic_arn: str) -> str:
    # subscription ARNs are unique across all topics
    return f"{topic_arn}:{long_uid()}"


def topic_arn_from_subscription_arn(subscription_arn: str) -> str:
    # everything before the trailing ":<token>", empty if there is no token
    return subscription_arn.rpartition(":")[0]
