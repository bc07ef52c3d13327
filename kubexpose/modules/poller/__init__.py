"""
Poller Module - Black Box Interface

Purpose: Confirm that the cluster converged after a change
Interface: poll_until(), ConvergencePoller.poll(), checks.wait_for_*()
Hidden: Tick scheduling, outcome folding, deadline handling

Works with any fetch callable and acceptance check.
"""

from .poller import (
    Acceptance,
    ConvergencePoller,
    OutcomeKind,
    PollOutcome,
    PollPhase,
    PollResult,
    PollState,
    PollStatus,
    Verdict,
    poll_until,
    sample,
    validate_poll_window,
)

__all__ = [
    "Acceptance",
    "ConvergencePoller",
    "OutcomeKind",
    "PollOutcome",
    "PollPhase",
    "PollResult",
    "PollState",
    "PollStatus",
    "Verdict",
    "poll_until",
    "sample",
    "validate_poll_window",
]
