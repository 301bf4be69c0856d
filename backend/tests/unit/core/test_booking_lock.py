"""
Unit tests for booking_lock.py.

Coverage:
1) Key generation
2) Local registry mutual exclusion and timeouts
3) Redis SET NX PX acquire and owner-only release
4) Fail-closed behaviour when the lock store is unavailable
"""

import threading
import time
from unittest.mock import ANY, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from spacebook.core.booking_lock import (
    LocalLockRegistry,
    RedisLockBackend,
    _ledger_key,
    _lock_key,
    get_lock_backend,
    ledger_lock,
    resource_lock,
    set_lock_backend,
)
from spacebook.core.exceptions import LockAcquisitionError


class TestKeyGeneration:
    def test_lock_key_format(self):
        assert _lock_key("ABC123") == "resource:ABC123:booking"

    def test_ledger_key_format(self):
        assert _ledger_key("R1") == "reservation:R1:ledger"

    def test_resource_and_ledger_keys_never_collide(self):
        assert _lock_key("X") != _ledger_key("X")


class TestLocalLockRegistry:
    def test_second_acquire_times_out_while_held(self):
        registry = LocalLockRegistry()
        token = registry.acquire("k", timeout_s=0.1)
        assert token is not None
        assert registry.acquire("k", timeout_s=0.05) is None
        registry.release("k", token)
        assert registry.acquire("k", timeout_s=0.05) is not None

    def test_keys_are_independent(self):
        registry = LocalLockRegistry()
        assert registry.acquire("a", timeout_s=0.05) is not None
        assert registry.acquire("b", timeout_s=0.05) is not None
        assert len(registry) == 2

    def test_released_keys_are_dropped(self):
        registry = LocalLockRegistry()
        set_lock_backend(registry)

        for i in range(1000):
            with ledger_lock(f"r{i}"):
                assert len(registry) == 1

        assert len(registry) == 0

    def test_timed_out_waiter_does_not_leave_entry(self):
        registry = LocalLockRegistry()
        token = registry.acquire("k", timeout_s=0.1)
        assert registry.acquire("k", timeout_s=0.02) is None
        assert len(registry) == 1

        registry.release("k", token)

        assert len(registry) == 0

    def test_entry_kept_while_waiter_queued(self):
        registry = LocalLockRegistry()
        token = registry.acquire("k", timeout_s=0.1)
        acquired = threading.Event()

        def waiter():
            waiter_token = registry.acquire("k", timeout_s=5)
            acquired.set()
            registry.release("k", waiter_token)

        thread = threading.Thread(target=waiter)
        thread.start()
        time.sleep(0.05)
        registry.release("k", token)
        thread.join()

        assert acquired.is_set()
        assert len(registry) == 0

    def test_resource_lock_serializes_threads(self):
        set_lock_backend(LocalLockRegistry())
        inside = []
        overlaps = []
        guard = threading.Lock()

        def worker():
            with resource_lock("room-1", timeout_s=5):
                with guard:
                    if inside:
                        overlaps.append(True)
                    inside.append(1)
                time.sleep(0.01)
                with guard:
                    inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert overlaps == []

    def test_resource_lock_raises_when_busy(self):
        registry = LocalLockRegistry()
        set_lock_backend(registry)
        registry.acquire(_lock_key("room-2"), timeout_s=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            with resource_lock("room-2", timeout_s=0.05):
                pass

        assert exc_info.value.code == "LOCK_UNAVAILABLE"
        assert exc_info.value.details == {"lock_key": "resource:room-2:booking", "reason": "timeout"}

    def test_lock_released_when_block_raises(self):
        set_lock_backend(LocalLockRegistry())
        with pytest.raises(RuntimeError):
            with ledger_lock("res-1"):
                raise RuntimeError("boom")
        with ledger_lock("res-1", timeout_s=0.05):
            pass


class TestRedisLockBackend:
    def test_acquire_uses_set_nx_px(self):
        client = MagicMock()
        client.set.return_value = True
        backend = RedisLockBackend(client, ttl_s=30)

        token = backend.acquire("resource:R:booking", timeout_s=0.1)

        assert token
        client.set.assert_called_once_with(
            "spacebook:lock:resource:R:booking", ANY, nx=True, px=30000
        )

    def test_acquire_gives_up_after_timeout(self):
        client = MagicMock()
        client.set.return_value = False
        backend = RedisLockBackend(client, ttl_s=30, poll_interval_s=0.01)

        assert backend.acquire("k", timeout_s=0.03) is None
        assert client.set.call_count >= 2

    def test_release_only_deletes_own_token(self):
        client = MagicMock()
        client.eval.return_value = 1
        backend = RedisLockBackend(client, ttl_s=30)

        backend.release("k", "token-1")

        client.eval.assert_called_once_with(ANY, 1, "spacebook:lock:k", "token-1")

    def test_release_of_expired_lock_logs_warning(self, caplog):
        client = MagicMock()
        client.eval.return_value = 0
        backend = RedisLockBackend(client, ttl_s=30)

        with caplog.at_level("WARNING"):
            backend.release("k", "stale")

        assert "booking_lock_release_not_owner" in caplog.text

    def test_unreachable_store_fails_closed(self):
        client = MagicMock()
        client.set.side_effect = RedisConnectionError("down")
        set_lock_backend(RedisLockBackend(client, ttl_s=30))

        body_ran = False
        with pytest.raises(LockAcquisitionError) as exc_info:
            with resource_lock("room-3"):
                body_ran = True

        assert body_ran is False
        assert exc_info.value.details["reason"] == "lock_store_unavailable"

    def test_release_error_does_not_mask_block_result(self):
        client = MagicMock()
        client.set.return_value = True
        client.eval.side_effect = RedisConnectionError("gone")
        set_lock_backend(RedisLockBackend(client, ttl_s=30))

        with resource_lock("room-4"):
            value = 42

        assert value == 42


class TestBackendSelection:
    def test_local_backend_by_default(self):
        set_lock_backend(None)
        with patch("spacebook.core.booking_lock.settings") as mock_settings:
            mock_settings.booking_lock_backend = "local"
            assert isinstance(get_lock_backend(), LocalLockRegistry)

    def test_redis_backend_from_settings(self):
        set_lock_backend(None)
        with patch("spacebook.core.booking_lock.settings") as mock_settings, patch(
            "spacebook.core.booking_lock.Redis"
        ) as mock_redis:
            mock_settings.booking_lock_backend = "redis"
            mock_settings.redis_url = "redis://cache:6379/1"
            mock_settings.booking_lock_ttl_s = 12
            backend = get_lock_backend()

        assert isinstance(backend, RedisLockBackend)
        assert backend.ttl_ms == 12000
        mock_redis.from_url.assert_called_once_with(
            "redis://cache:6379/1", encoding="utf-8", decode_responses=True
        )
