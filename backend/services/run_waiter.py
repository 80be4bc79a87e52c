import asyncio
import enum
import logging
import time
from collections.abc import Awaitable, Callable

from backend.errors import RunFailedError, RunTimeoutError
from backend.services.assistant_client import AssistantClient
from backend.services.models import Run

logger = logging.getLogger(__name__)

FAILURE_STATUSES = frozenset({"failed", "cancelled", "expired", "incomplete"})


class WaitState(enum.Enum):
    """Where the waiter is in watching a run."""

    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class RunWaiter:
    """Poll a run until it reaches a terminal state or the wait budget runs out.

    Status is checked before every sleep, so a run that is already finished is
    seen on the first check regardless of the budget. Sleeping goes through
    ``asyncio.sleep`` so other requests keep being served while a run is pending.
    A timeout only stops the watching; the upstream run is left alone.
    """

    def __init__(
        self,
        client: AssistantClient,
        poll_interval: float = 1.0,
        max_wait: float = 30.0,
        fail_on_requires_action: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Configure polling cadence, default budget and time sources."""
        self.client = client
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self.fail_on_requires_action = fail_on_requires_action
        self._sleep = sleep
        self._clock = clock

    def _next_state(self, run: Run, elapsed: float, budget: float) -> WaitState:
        """Decide the next state from the latest observed run."""
        if run.status == "completed":
            return WaitState.COMPLETED
        if run.status in FAILURE_STATUSES:
            return WaitState.FAILED
        if run.status == "requires_action" and self.fail_on_requires_action:
            return WaitState.FAILED
        if elapsed >= budget:
            return WaitState.TIMED_OUT
        return WaitState.POLLING

    async def wait_for_completion(
        self, thread_id: str, run_id: str, max_wait: float | None = None
    ) -> Run:
        """Block the calling coroutine until the run completes.

        Raises :class:`RunFailedError` for failure states and
        :class:`RunTimeoutError` once ``max_wait`` seconds have elapsed.
        """
        budget = self.max_wait if max_wait is None else max_wait
        started = self._clock()
        checks = 0

        while True:
            run = await self.client.get_run_status(thread_id, run_id)
            checks += 1
            state = self._next_state(run, self._clock() - started, budget)

            if state is WaitState.COMPLETED:
                logger.info("Run %s completed after %d status checks", run_id, checks)
                return run

            if state is WaitState.FAILED:
                detail = (
                    run.last_error.message
                    if run.last_error and run.last_error.message
                    else "Unknown error"
                )
                logger.error("Run %s ended with %s: %s", run_id, run.status, detail)
                raise RunFailedError(f"Run {run.status}: {detail}")

            if state is WaitState.TIMED_OUT:
                logger.error(
                    "Run %s still %s after %.1fs (%d checks); giving up",
                    run_id,
                    run.status,
                    budget,
                    checks,
                )
                raise RunTimeoutError("Run timeout - assistant took too long to respond")

            await self._sleep(self.poll_interval)
