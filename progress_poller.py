"""
Polling loop for import job status.

A PollSession tracks one import job from the moment it is created until it
reaches a terminal state::

    IDLE -> POLLING -> COMPLETED | FAILED | CANCELLED

Each tick fetches the job, evaluates its progress snapshot and returns a
typed result (TickProgress, TickComplete or TickError) that the session
applies. The loop awaits every tick before scheduling the next one, so at
most one fetch is in flight; a slow fetch defers the next tick instead of
overlapping it. Ticks are also numbered at start, and a result older than
the last applied one is dropped, so snapshots follow tick-start order even
when ticks are driven concurrently.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from alert_sink import AlertSink
from exceptions import ApiError, EvaluationFault, ImportJobError, PollFetchError
from job_submitter import StatusCallback
from progress_model import ImportJob, extract_snapshot, is_complete, progress_entries
from viz_components import PacedBar, ProgressVisualizer

logger = logging.getLogger(__name__)

COMPLETE_MESSAGE = "Import complete."
DEFAULT_POLL_INTERVAL = 1.0

FetchStatus = Callable[[Any], Awaitable[Dict[str, Any]]]


class PollState(enum.Enum):
    IDLE = "idle"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({PollState.COMPLETED, PollState.FAILED, PollState.CANCELLED})


@dataclass(frozen=True)
class TickProgress:
    snapshot: Dict[str, Any]


@dataclass(frozen=True)
class TickComplete:
    snapshot: Dict[str, Any]


@dataclass(frozen=True)
class TickError:
    message: str
    error: Optional[ImportJobError] = field(default=None, compare=False)


TickResult = Union[TickProgress, TickComplete, TickError]


def describe_exception(exc: BaseException) -> str:
    """Return a user-facing description of an unexpected exception."""
    return str(exc) or type(exc).__name__


class CancellationToken:
    """
    Cooperative stop signal shared by a session's loop and its ticks.

    Setting it prevents future ticks and wakes the loop if it is waiting
    for the next period. It never interrupts a fetch already in flight.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; return True if cancelled meanwhile."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class PollSession:
    """
    Tracks one import job until it completes, fails or is cancelled.

    The session owns the job and its latest snapshot; nothing else writes
    them while it is live. Terminal outcomes are reported through the alert
    sink exactly once, and cancellation reports nothing.
    """

    def __init__(
        self,
        job: ImportJob,
        fetch_status: FetchStatus,
        alerts: AlertSink,
        visualizer: Optional[ProgressVisualizer] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
        status_callback: Optional[StatusCallback] = None
    ):
        """
        Initialize a poll session.

        Args:
            job: Job returned by the submitter
            fetch_status: Coroutine function returning the job representation for an id
            alerts: Sink receiving the terminal alert
            visualizer: Optional renderer receiving each applied snapshot
            interval: Seconds between the starts of consecutive ticks
            status_callback: Receives None when the session stops
        """
        self.job = job
        self.fetch_status = fetch_status
        self.alerts = alerts
        self.visualizer = visualizer
        self.interval = interval
        self.status_callback = status_callback

        self.state = PollState.IDLE
        self.snapshot: Dict[str, Any] = dict(job.progress)
        self.token = CancellationToken()
        self.fetch_count = 0
        self._task: Optional[asyncio.Task] = None
        self._tick_seq = 0
        self._applied_seq = 0

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def start(self) -> asyncio.Task:
        """
        Begin polling on the running event loop.

        Raises:
            RuntimeError: If the session was already started or has ended
        """
        if self.state is not PollState.IDLE:
            raise RuntimeError(f"Cannot start a poll session in state {self.state.value}")
        self.alerts.clear()
        self.state = PollState.POLLING
        logger.info(f"Polling import {self.job.id} every {self.interval:g}s")
        self._task = asyncio.get_running_loop().create_task(self._run(self.token))
        return self._task

    async def wait(self) -> PollState:
        """Wait for the polling loop to stop and return the final state."""
        if self._task is not None:
            await self._task
        return self.state

    async def run(self) -> PollState:
        """Start polling and wait for a terminal state."""
        self.start()
        return await self.wait()

    def cancel(self) -> None:
        """
        Stop polling without reporting anything.

        Takes effect at the next tick boundary; a fetch already in flight
        completes but its result is discarded.
        """
        if self.is_terminal:
            return
        logger.info(f"Cancelling poll session for import {self.job.id}")
        self.state = PollState.CANCELLED
        self.token.cancel()
        self._set_status(None)

    async def _run(self, token: CancellationToken) -> None:
        loop = asyncio.get_running_loop()
        delay = self.interval
        try:
            while not self.is_terminal:
                if await token.wait(delay):
                    break
                started = loop.time()
                await self.tick(token)
                delay = max(0.0, self.interval - (loop.time() - started))
        except Exception as e:
            logger.exception(f"Poll loop for import {self.job.id} failed")
            self._fail(describe_exception(e))
        finally:
            token.cancel()
        logger.debug(f"Poll loop for import {self.job.id} stopped ({self.state.value})")

    async def tick(self, token: Optional[CancellationToken] = None) -> PollState:
        """
        Run one poll-and-evaluate step and apply its result.

        Never raises: any unexpected exception fails the session with a
        danger alert.

        Args:
            token: Cancellation token captured when the tick was scheduled

        Returns:
            Session state after the tick
        """
        token = token or self.token
        if token.cancelled or self.is_terminal:
            return self.state

        self._tick_seq += 1
        seq = self._tick_seq
        logger.debug(f"Tick {seq} for import {self.job.id}")

        try:
            result = await self._fetch_and_evaluate()
        except Exception as e:
            logger.exception(f"Unexpected error while polling import {self.job.id}")
            result = TickError(
                describe_exception(e),
                EvaluationFault(describe_exception(e), original_error=e)
            )

        if token.cancelled or self.is_terminal:
            logger.debug(f"Discarding tick {seq} result: session is {self.state.value}")
            return self.state
        if seq < self._applied_seq:
            logger.debug(f"Discarding stale tick {seq} result (tick {self._applied_seq} applied)")
            return self.state
        self._applied_seq = seq

        try:
            self._apply(result)
        except Exception as e:
            logger.exception(f"Failed to apply tick {seq} for import {self.job.id}")
            self._fail(describe_exception(e))
        return self.state

    async def _fetch_and_evaluate(self) -> TickResult:
        self.fetch_count += 1
        try:
            payload = await self.fetch_status(self.job.id)
        except ApiError as e:
            error = PollFetchError(e.status_text, details={'import_id': self.job.id}, original_error=e)
            return TickError(e.status_text, error)

        try:
            snapshot = extract_snapshot(payload)
        except EvaluationFault as e:
            return TickError(str(e), e)

        if is_complete(snapshot):
            return TickComplete(snapshot)
        return TickProgress(snapshot)

    def _apply(self, result: TickResult) -> None:
        if isinstance(result, TickError):
            self._fail(result.message)
            return

        self.snapshot = result.snapshot
        self.job.progress = result.snapshot
        self._forward(result.snapshot)

        if isinstance(result, TickComplete):
            self.state = PollState.COMPLETED
            logger.info(f"Import {self.job.id} complete")
            self.alerts.success(COMPLETE_MESSAGE)
            self._set_status(None)
            self.token.cancel()

    def _forward(self, snapshot: Dict[str, Any]) -> None:
        if self.visualizer is None:
            return
        for entry in progress_entries(snapshot):
            self.visualizer.render(
                entry.resource_type,
                PacedBar(value=entry.imported, pacer=entry.total, max=entry.total)
            )

    def _fail(self, message: str) -> None:
        if self.is_terminal:
            return
        logger.error(f"Import {self.job.id} tracking failed: {message}")
        self.job.failure = message
        self.state = PollState.FAILED
        self.alerts.danger(message)
        self._set_status(None)
        self.token.cancel()

    def _set_status(self, status: Optional[str]) -> None:
        if self.status_callback is not None:
            self.status_callback(status)
