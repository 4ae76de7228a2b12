"""Unit tests for per-resource locks."""
import threading

import pytest

from common.errors import StorageError
from common.locks import ResourceLockRegistry


class TestResourceLockRegistry:
    def test_same_resource_is_exclusive(self):
        locks = ResourceLockRegistry(timeout=0.1)
        acquired = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold("room-1"):
                acquired.set()
                release.wait(5)

        thread = threading.Thread(target=holder)
        thread.start()
        assert acquired.wait(5)
        try:
            with pytest.raises(StorageError, match="busy"):
                with locks.hold("room-1"):
                    pass
        finally:
            release.set()
            thread.join()

    def test_different_resources_do_not_block(self):
        locks = ResourceLockRegistry(timeout=0.1)

        with locks.hold("room-1"):
            with locks.hold("room-2"):
                pass

    def test_lock_released_after_error(self):
        locks = ResourceLockRegistry(timeout=0.1)

        with pytest.raises(RuntimeError):
            with locks.hold("room-1"):
                raise RuntimeError("boom")

        with locks.hold("room-1"):
            pass

    def test_released_locks_are_dropped(self):
        locks = ResourceLockRegistry(timeout=0.1)

        for n in range(500):
            with locks.hold(f"ghost-{n}"):
                assert len(locks) == 1

        assert len(locks) == 0

    def test_timed_out_waiter_is_dropped(self):
        locks = ResourceLockRegistry(timeout=0.1)

        with locks.hold("room-1"):
            with pytest.raises(StorageError):
                with locks.hold("room-1"):
                    pass
            assert len(locks) == 1

        assert len(locks) == 0

    def test_waiter_shares_the_held_lock(self):
        locks = ResourceLockRegistry(timeout=5)
        acquired = threading.Event()
        release = threading.Event()
        order = []

        def holder():
            with locks.hold("room-1"):
                acquired.set()
                release.wait(5)
                order.append("holder")

        thread = threading.Thread(target=holder)
        thread.start()
        assert acquired.wait(5)
        threading.Timer(0.2, release.set).start()
        with locks.hold("room-1"):
            order.append("main")
        thread.join()

        assert order == ["holder", "main"]
        assert len(locks) == 0
