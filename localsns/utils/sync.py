"""Concurrency synchronization utilities"""

import threading
from collections import defaultdict


class SynchronizedDefaultDict(defaultdict):
    """
    A defaultdict whose item access (including the creation of missing items) is guarded by a reentrant lock.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._lock = threading.RLock()

    def __getitem__(self, key):
        with self._lock:
            return super().__getitem__(key)

    def __setitem__(self, key, value):
        with self._lock:
            super().__setitem__(key, value)
