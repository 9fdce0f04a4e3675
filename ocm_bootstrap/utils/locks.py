import os
import threading
import weakref
from contextlib import contextmanager
from typing import Iterator


class _DirectoryLock:
    def __init__(self):
        self._lock: threading.Lock = threading.Lock()

    def acquire(self, blocking: bool = True) -> bool:
        return self._lock.acquire(blocking)

    def release(self) -> None:
        self._lock.release()


_registry_lock = threading.Lock()
# Entries disappear once no caller holds a reference to the lock.
_directory_locks: weakref.WeakValueDictionary[str, _DirectoryLock] = weakref.WeakValueDictionary()


def _lock_for(directory: str) -> _DirectoryLock:
    key = os.path.realpath(directory)
    with _registry_lock:
        lock = _directory_locks.get(key)
        if lock is None:
            lock = _DirectoryLock()
            _directory_locks[key] = lock
        return lock


@contextmanager
def directory_lock(directory: str) -> Iterator[None]:
    """Hold the exclusive lock of a directory for the duration of the block."""
    lock = _lock_for(directory)
    lock.acquire()
    try:
        yield
    finally:
        lock.release()
