"""
Mutual exclusion for the check-then-write booking and ledger sequences.

``create`` and ``reschedule`` hold ``resource_lock(resource_id)`` across the
availability check and the commit, so two writers targeting the same
resource are serialized. Payment writes for one reservation hold
``ledger_lock(reservation_id)`` the same way. Locks fail closed: if one cannot
be obtained the caller gets ``LockAcquisitionError`` and nothing is written.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator, Optional, Protocol

from redis import Redis
from redis.exceptions import RedisError
import ulid

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .exceptions import LockAcquisitionError

logger = logging.getLogger(__name__)

_LOCK_NAMESPACE = "spacebook:lock"

# Only the holder's token may delete the key.
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _lock_key(resource_id: str) -> str:
    return f"resource:{resource_id}:booking"


def _ledger_key(reservation_id: str) -> str:
    return f"reservation:{reservation_id}:ledger"


class LockBackend(Protocol):
    def acquire(self, key: str, timeout_s: float) -> Optional[str]:
        ...

    def release(self, key: str, token: str) -> None:
        ...


class _Slot:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class LocalLockRegistry:
    """
    In-process registry of one ``threading.Lock`` per key.

    A key's entry lives only while some thread holds or waits on it, so the
    registry stays bounded by the number of in-flight writers.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, _Slot] = {}
        self._guard = threading.Lock()

    def _checkout(self, key: str) -> _Slot:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = _Slot()
                self._slots[key] = slot
            slot.users += 1
            return slot

    def _checkin(self, key: str, slot: _Slot) -> None:
        with self._guard:
            slot.users -= 1
            if slot.users == 0:
                del self._slots[key]

    def acquire(self, key: str, timeout_s: float) -> Optional[str]:
        slot = self._checkout(key)
        if slot.lock.acquire(timeout=timeout_s):
            return key
        self._checkin(key, slot)
        return None

    def release(self, key: str, token: str) -> None:
        with self._guard:
            slot = self._slots[key]
        slot.lock.release()
        self._checkin(key, slot)

    def __len__(self) -> int:
        with self._guard:
            return len(self._slots)


class RedisLockBackend:
    """``SET NX PX`` lock shared by every process pointed at the same Redis."""

    def __init__(self, client: Redis, ttl_s: int, poll_interval_s: float = 0.05) -> None:
        self.client = client
        self.ttl_ms = int(ttl_s * 1000)
        self.poll_interval_s = poll_interval_s

    @staticmethod
    def _namespaced(key: str) -> str:
        return f"{_LOCK_NAMESPACE}:{key}"

    def acquire(self, key: str, timeout_s: float) -> Optional[str]:
        token = str(ulid.ULID())
        deadline = time.monotonic() + timeout_s
        while True:
            if self.client.set(self._namespaced(key), token, nx=True, px=self.ttl_ms):
                return token
            if time.monotonic() >= deadline:
                return None
            time.sleep(self.poll_interval_s)

    def release(self, key: str, token: str) -> None:
        released = self.client.eval(_RELEASE_SCRIPT, 1, self._namespaced(key), token)
        if not released:
            # Key expired (ttl shorter than the critical section) or was taken over.
            logger.warning("booking_lock_release_not_owner", extra={"lock_key": key})


_BACKEND: Optional[LockBackend] = None
_BACKEND_LOCK = threading.Lock()


def get_lock_backend() -> LockBackend:
    global _BACKEND
    if _BACKEND is not None:
        return _BACKEND
    with _BACKEND_LOCK:
        if _BACKEND is not None:
            return _BACKEND
        if settings.booking_lock_backend == "redis":
            client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
            _BACKEND = RedisLockBackend(client, ttl_s=settings.booking_lock_ttl_s)
        else:
            _BACKEND = LocalLockRegistry()
        logger.info("booking_lock_backend_initialized: %s", type(_BACKEND).__name__)
        return _BACKEND


def set_lock_backend(backend: Optional[LockBackend]) -> None:
    """Swap the process-wide backend (``None`` re-reads settings on next use)."""
    global _BACKEND
    with _BACKEND_LOCK:
        _BACKEND = backend


@contextmanager
def _held(key: str, timeout_s: Optional[float]) -> Iterator[None]:
    backend = get_lock_backend()
    wait = settings.booking_lock_timeout_s if timeout_s is None else timeout_s

    try:
        token = backend.acquire(key, wait)
    except RedisError as exc:
        prometheus_metrics.record_booking_lock("acquire", "error")
        logger.error(
            "booking_lock_acquire_failed",
            extra={"lock_key": key, "error": str(exc), "error_type": type(exc).__name__},
        )
        raise LockAcquisitionError(key, reason="lock_store_unavailable") from exc

    if token is None:
        prometheus_metrics.record_booking_lock("acquire", "timeout")
        logger.warning("booking_lock_timeout", extra={"lock_key": key, "wait_s": wait})
        raise LockAcquisitionError(key)

    prometheus_metrics.record_booking_lock("acquire", "success")
    try:
        yield
    finally:
        try:
            backend.release(key, token)
            prometheus_metrics.record_booking_lock("release", "success")
        except RedisError as exc:
            # The ttl bounds how long an unreleased key can block other writers.
            prometheus_metrics.record_booking_lock("release", "error")
            logger.warning("booking_lock_release_failed", extra={"lock_key": key, "error": str(exc)})


@contextmanager
def resource_lock(resource_id: str, timeout_s: Optional[float] = None) -> Iterator[None]:
    """
    Hold the booking mutex for ``resource_id`` for the duration of the block.

    Raises:
        LockAcquisitionError: lock not obtained within the timeout, or the
            lock store is unreachable
    """
    with _held(_lock_key(resource_id), timeout_s):
        yield


@contextmanager
def ledger_lock(reservation_id: str, timeout_s: Optional[float] = None) -> Iterator[None]:
    """Serialize payment writes for one reservation; same failure modes as ``resource_lock``."""
    with _held(_ledger_key(reservation_id), timeout_s):
        yield
