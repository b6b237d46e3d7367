"""
In-memory store of all topics and their subscriptions.

The registry emulates a concurrent key/value map: every topic name has its own lock, so operations on different topics
never block each other, while operations on the same topic are mutually exclusive. The registry-wide lock only guards
the structure of the underlying dicts and is never held while waiting for a topic lock.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from localsns.models import Subscription, Topic
from localsns.utils.sync import SynchronizedDefaultDict

LOG = logging.getLogger(__name__)


class TopicRegistry:
    _topics: Dict[str, Topic]
    _locks: SynchronizedDefaultDict

    def __init__(self):
        self._topics = {}
        # locks are kept once created, so that all threads always agree on the lock of a given name
        self._locks = SynchronizedDefaultDict(threading.RLock)
        self._mutex = threading.RLock()

    def _lock_for(self, name: str) -> threading.RLock:
        return self._locks[name]

    def insert(self, name: str, topic: Topic) -> Optional[Topic]:
        """
        Stores the topic under the given name, replacing any existing topic with that name.

        :return: the replaced topic, if any
        """
        with self._lock_for(name):
            with self._mutex:
                previous = self._topics.get(name)
                self._topics[name] = topic
        return previous

    def remove(self, name: str) -> Optional[Topic]:
        with self._lock_for(name):
            with self._mutex:
                return self._topics.pop(name, None)

    @contextmanager
    def get(self, name: str) -> Iterator[Optional[Topic]]:
        """
        Context manager that yields the topic with the given name (or None) while holding the lock of that topic.
        The yielded object must not be used after the block is left.
        """
        with self._lock_for(name):
            with self._mutex:
                topic = self._topics.get(name)
            yield topic

    # reads and writes share the same exclusive per-topic lock
    get_mut = get

    @contextmanager
    def get_or_create(self, name: str, factory: Callable[[], Topic]) -> Iterator[Topic]:
        """
        Like ``get``, but atomically inserts the topic created by ``factory`` if no topic with that name exists.
        """
        with self._lock_for(name):
            with self._mutex:
                topic = self._topics.get(name)
                if topic is None:
                    topic = factory()
                    self._topics[name] = topic
                    LOG.debug("Created topic %s", topic.arn)
            yield topic

    def iter(self) -> List[Topic]:
        """
        Returns a snapshot of all topics. Each topic is copied while holding its lock, so later changes to the
        registry are not reflected in the returned objects.
        """
        with self._mutex:
            names = list(self._topics.keys())

        snapshot = []
        for name in names:
            with self.get(name) as topic:
                if topic is not None:
                    snapshot.append(topic.copy())
        return snapshot

    def find_subscription(self, subscription_arn: str) -> Optional[Subscription]:
        """
        Searches all topics for the subscription with the given ARN, and returns a copy of it.
        """
        for topic in self.iter():
            if subscription := topic.get_subscription(subscription_arn):
                return subscription
        return None

    def __contains__(self, name: str) -> bool:
        with self._mutex:
            return name in self._topics

    def __len__(self) -> int:
        with self._mutex:
            return len(self._topics)
