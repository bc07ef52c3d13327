"""
Convergence poller.

Samples live state on a fixed interval until a check passes, the check
reports a mismatch, or the deadline passes. Fetch failures are transient and
only show up as context on timeout; a mismatch ends the poll immediately.

Each tick produces a PollOutcome which is folded into an immutable PollState,
so every transition can be exercised without a clock.
"""

import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Union

from kubexpose.errors import ConvergenceMismatch, ConvergenceTimeout, FetchError

logger = logging.getLogger("kubexpose.poller")


class Verdict(Enum):
    """What an acceptance check concluded about a snapshot."""

    CONVERGED = "converged"
    NOT_YET = "not_yet"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class Acceptance:
    """Result of an acceptance check."""

    verdict: Verdict
    detail: Optional[str] = None

    @classmethod
    def converged(cls) -> "Acceptance":
        return cls(Verdict.CONVERGED)

    @classmethod
    def not_yet(cls, detail: Optional[str] = None) -> "Acceptance":
        return cls(Verdict.NOT_YET, detail)

    @classmethod
    def mismatch(cls, detail: str) -> "Acceptance":
        return cls(Verdict.MISMATCH, detail)


Fetch = Callable[[], Any]
Accept = Callable[[Any], Union[Acceptance, bool]]


class OutcomeKind(Enum):
    """Result of a single tick."""

    CONVERGED = "converged"
    NOT_YET_CONVERGED = "not_yet_converged"
    MISMATCH = "mismatch"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class PollOutcome:
    """What happened on one tick."""

    kind: OutcomeKind
    snapshot: Any = None
    error: Optional[FetchError] = None
    detail: Optional[str] = None


class PollPhase(Enum):
    """Poll state machine phases."""

    WAITING = "waiting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollState:
    """Aggregate state carried from tick to tick."""

    phase: PollPhase = PollPhase.WAITING
    ticks: int = 0
    last_fetch_error: Optional[FetchError] = None
    last_snapshot: Any = None
    detail: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.phase is not PollPhase.WAITING

    def fold(self, outcome: PollOutcome) -> "PollState":
        """Apply one tick's outcome. Terminal states do not change."""
        if self.is_terminal:
            return self

        ticks = self.ticks + 1
        if outcome.kind is OutcomeKind.FETCH_FAILED:
            return replace(self, ticks=ticks, last_fetch_error=outcome.error)

        # A successful fetch supersedes any earlier fetch error
        state = replace(
            self,
            ticks=ticks,
            last_fetch_error=None,
            last_snapshot=outcome.snapshot,
            detail=outcome.detail,
        )
        if outcome.kind is OutcomeKind.CONVERGED:
            return replace(state, phase=PollPhase.SUCCEEDED)
        if outcome.kind is OutcomeKind.MISMATCH:
            return replace(state, phase=PollPhase.FAILED)
        return state

    def time_out(self) -> "PollState":
        if self.is_terminal:
            return self
        return replace(self, phase=PollPhase.TIMED_OUT)


class PollStatus(str, Enum):
    """Overall result of a poll."""

    SUCCESS = "success"
    TIMEOUT = "timeout"
    FATAL_ERROR = "fatal_error"


_STATUS_BY_PHASE = {
    PollPhase.SUCCEEDED: PollStatus.SUCCESS,
    PollPhase.FAILED: PollStatus.FATAL_ERROR,
    PollPhase.TIMED_OUT: PollStatus.TIMEOUT,
}


@dataclass
class PollResult:
    """
    Outcome of a whole poll.

    error
    The last fetch error on TIMEOUT, None otherwise.

    detail
    Mismatch description on FATAL_ERROR, or the last not-yet detail.
    """

    status: PollStatus
    ticks: int
    elapsed: float
    snapshot: Any = None
    error: Optional[FetchError] = None
    detail: Optional[str] = None
    description: str = ""

    @property
    def ok(self) -> bool:
        return self.status == PollStatus.SUCCESS

    @classmethod
    def from_state(cls, state: PollState, elapsed: float, description: str = "") -> "PollResult":
        return cls(
            status=_STATUS_BY_PHASE[state.phase],
            ticks=state.ticks,
            elapsed=elapsed,
            snapshot=state.last_snapshot,
            error=state.last_fetch_error if state.phase is PollPhase.TIMED_OUT else None,
            detail=state.detail,
            description=description,
        )

    def raise_for_status(self) -> None:
        """Raise ConvergenceMismatch or ConvergenceTimeout unless the poll succeeded."""
        what = self.description or "condition"
        if self.status == PollStatus.FATAL_ERROR:
            raise ConvergenceMismatch(self.detail or f"{what} converged to an unexpected value")
        if self.status == PollStatus.TIMEOUT:
            message = f"timed out after {self.elapsed:.1f}s waiting for {what}"
            if self.error is not None:
                message += f": {self.error}"
            raise ConvergenceTimeout(message, last_error=self.error) from self.error


def validate_poll_window(interval: float, timeout: float) -> None:
    """Reject a non-positive interval or a negative timeout."""
    if interval <= 0:
        raise ValueError(f"poll interval must be positive, got {interval}")
    if timeout < 0:
        raise ValueError(f"poll timeout must not be negative, got {timeout}")


def _to_acceptance(value: Union[Acceptance, bool]) -> Acceptance:
    if isinstance(value, Acceptance):
        return value
    return Acceptance.converged() if value else Acceptance.not_yet()


def sample(fetch: Fetch, accept: Accept) -> PollOutcome:
    """Run one tick: fetch a snapshot and judge it."""
    try:
        snapshot = fetch()
    except FetchError as e:
        return PollOutcome(OutcomeKind.FETCH_FAILED, error=e)

    acceptance = _to_acceptance(accept(snapshot))
    if acceptance.verdict is Verdict.CONVERGED:
        return PollOutcome(OutcomeKind.CONVERGED, snapshot=snapshot, detail=acceptance.detail)
    if acceptance.verdict is Verdict.MISMATCH:
        return PollOutcome(OutcomeKind.MISMATCH, snapshot=snapshot, detail=acceptance.detail)
    return PollOutcome(OutcomeKind.NOT_YET_CONVERGED, snapshot=snapshot, detail=acceptance.detail)


def poll_until(
    interval: float,
    timeout: float,
    immediate: bool,
    fetch: Fetch,
    accept: Accept,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    description: str = "",
) -> PollResult:
    """
    Poll until accept converges, reports a mismatch, or timeout passes.

    Args:
        interval: Seconds between ticks
        timeout: Seconds before giving up
        immediate: Fire the first tick right away instead of after one interval
        fetch: Returns a snapshot, raises FetchError when state is unavailable
        accept: Judges a snapshot; returns an Acceptance, or a bool where
            True means converged and False means not yet
        clock: Monotonic clock in seconds
        sleep: Blocking sleep in seconds
        description: Human readable name of what is awaited, for logs and errors

    Returns:
        PollResult
    """
    validate_poll_window(interval, timeout)

    what = description or "condition"
    start = clock()
    deadline = start + timeout
    next_tick = start if immediate else start + interval
    state = PollState()

    while next_tick < deadline or (immediate and state.ticks == 0):
        delay = next_tick - clock()
        if delay > 0:
            sleep(delay)

        outcome = sample(fetch, accept)
        state = state.fold(outcome)
        logger.debug(
            f"{what}: tick {state.ticks} -> {outcome.kind.value}",
            extra={"poll_tick": True},
        )
        if outcome.kind is OutcomeKind.FETCH_FAILED:
            logger.info(f"Unable to fetch state for {what}: {outcome.error}")

        if state.is_terminal:
            elapsed = clock() - start
            if state.phase is PollPhase.FAILED:
                logger.warning(f"{what} converged to an unexpected value: {state.detail}")
            else:
                logger.info(f"{what} converged after {state.ticks} tick(s)")
            return PollResult.from_state(state, elapsed, description)

        # Ticks missed while the last one ran are dropped, not replayed
        now = clock()
        next_tick += interval
        while next_tick <= now:
            next_tick += interval

    remaining = deadline - clock()
    if remaining > 0:
        sleep(remaining)

    state = state.time_out()
    elapsed = clock() - start
    logger.warning(
        f"Timed out waiting for {what} after {state.ticks} tick(s)"
        + (f", last error: {state.last_fetch_error}" if state.last_fetch_error else "")
    )
    return PollResult.from_state(state, elapsed, description)


class ConvergencePoller:
    """Poller bound to an interval, a timeout and a clock."""

    def __init__(
        self,
        interval: float = 3.0,
        timeout: float = 300.0,
        immediate: bool = True,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        validate_poll_window(interval, timeout)
        self.interval = interval
        self.timeout = timeout
        self.immediate = immediate
        self.clock = clock
        self.sleep = sleep

    def poll(self, fetch: Fetch, accept: Accept, description: str = "") -> PollResult:
        """Poll with this poller's settings."""
        return poll_until(
            self.interval,
            self.timeout,
            self.immediate,
            fetch,
            accept,
            clock=self.clock,
            sleep=self.sleep,
            description=description,
        )
