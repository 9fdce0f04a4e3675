import threading
import time

from ocm_bootstrap.errors import OperationCancelledError


class RunContext:
    """Cancellation and deadline shared by every step of one run.

    Waiting goes through the cancel event, so a cancelled run stops retry
    back-offs and polling loops right away instead of sleeping them out.
    """

    def __init__(self, timeout: float | None = None, cancel_event: threading.Event | None = None):
        self._cancel_event: threading.Event = cancel_event or threading.Event()
        self._deadline: float | None = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def timeout(self, default: float) -> float:
        """Timeout for a blocking call, never past the run deadline."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)

    def check(self) -> None:
        if self._cancel_event.is_set():
            raise OperationCancelledError("operation cancelled")
        if self.expired:
            raise OperationCancelledError("run deadline exceeded")

    def wait(self, seconds: float) -> None:
        self.check()
        if self._cancel_event.wait(self.timeout(seconds)):
            raise OperationCancelledError("operation cancelled")
        self.check()
