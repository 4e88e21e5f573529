"""Mutual exclusion on host names, addresses and hardware addresses."""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from typing import Iterator

import redis

from hostreg.exceptions import BackendUnavailableError, ConflictError

logger = logging.getLogger(__name__)

_PREFIX = "hostreg:lock"


def lock_key(kind: str, value: str) -> str:
    return f"{_PREFIX}:{kind}:{value.lower()}"


class HostLockManager:
    """Hold leases on every identifier an operation checks and then mutates.

    With a Redis client the leases are shared by every hostreg process
    pointed at that Redis; without one they only cover the current process.
    Keys are always taken in sorted order.
    """

    def __init__(self, client: redis.Redis | None = None, *, ttl_s: float = 300.0, wait_s: float = 10.0):
        self._client = client
        self._ttl_s = ttl_s
        self._wait_s = wait_s
        self._local: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @classmethod
    def from_url(cls, url: str | None, *, ttl_s: float = 300.0, wait_s: float = 10.0) -> HostLockManager:
        client = redis.Redis.from_url(url, socket_timeout=10, socket_connect_timeout=10) if url else None
        return cls(client, ttl_s=ttl_s, wait_s=wait_s)

    @property
    def distributed(self) -> bool:
        return self._client is not None

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._acquire(key))
            yield

    @contextmanager
    def _acquire(self, key: str) -> Iterator[None]:
        if self._client is None:
            with self._guard:
                lock = self._local.setdefault(key, threading.Lock())
            if not lock.acquire(timeout=self._wait_s):
                raise ConflictError(f"{key} is locked by another operation", owner=key)
            try:
                yield
            finally:
                lock.release()
            return

        lock = self._client.lock(key, timeout=self._ttl_s, blocking_timeout=self._wait_s)
        try:
            acquired = lock.acquire()
        except redis.ConnectionError as exc:
            raise BackendUnavailableError("lock", f"Redis unavailable: {exc}") from exc
        if not acquired:
            raise ConflictError(f"{key} is locked by another operation", owner=key)
        logger.debug("Acquired %s", key)
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError:
                logger.warning("Lease on %s expired before release", key)
