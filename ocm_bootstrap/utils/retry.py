import logging
from typing import Callable, TypeVar

from ocm_bootstrap.errors import TransientInfraError
from ocm_bootstrap.utils.context import RunContext

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry(
    ctx: RunContext,
    retries: int,
    wait: float,
    fn: Callable[[], T],
    retry_on: tuple[type[Exception], ...] = (TransientInfraError,),
) -> T:
    """Call fn, retrying at most `retries` more times with a fixed wait between attempts.

    Only errors of the retry_on types are retried; anything else propagates right away.
    """
    attempt = 0
    while True:
        ctx.check()
        try:
            return fn()
        except retry_on as e:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(f"Attempt {attempt} failed, retrying in {wait:g}s: {e}")
            ctx.wait(wait)
