from unittest.mock import MagicMock
import pytest
from ocm_bootstrap.errors import ConvergenceTimeoutError, OperationCancelledError
from ocm_bootstrap.utils.context import RunContext
from ocm_bootstrap.utils.polling import poll_until


def test_poll_until_converges():
    condition = MagicMock(side_effect=[(False, "pending"), (False, "pending"), (True, "ready")])
    poll_until(RunContext(), condition, "thing", interval=0.01, timeout=5)
    assert condition.call_count == 3


def test_poll_until_times_out_with_last_state():
    condition = MagicMock(return_value=(False, "still pending"))
    with pytest.raises(ConvergenceTimeoutError) as exc:
        poll_until(RunContext(), condition, "thing", interval=0.01, timeout=0.05)
    assert exc.value.last_state == "still pending"
    assert "thing" in str(exc.value)


def test_poll_until_cancelled():
    ctx = RunContext()
    ctx.cancel()
    with pytest.raises(OperationCancelledError):
        poll_until(ctx, MagicMock(return_value=(True, "")), "thing", interval=0.01, timeout=1)
