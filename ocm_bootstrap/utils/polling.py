import logging
import time
from typing import Callable

from ocm_bootstrap.errors import ConvergenceTimeoutError
from ocm_bootstrap.utils.context import RunContext

logger = logging.getLogger(__name__)


def poll_until(
    ctx: RunContext,
    condition: Callable[[], tuple[bool, str]],
    description: str,
    interval: float,
    timeout: float,
) -> None:
    """Evaluate condition every interval until it holds or timeout elapses.

    condition returns (done, state); the last state is reported on timeout.
    """
    deadline = time.monotonic() + timeout
    while True:
        ctx.check()
        done, state = condition()
        if done:
            logger.debug(f"{description} converged: {state}")
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ConvergenceTimeoutError(description, timeout, state)
        ctx.wait(min(interval, remaining))
