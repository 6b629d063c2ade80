"""
Cycle and supervisor enums.

Defines supervisor states and how failed cycles are treated.
"""

from enum import Enum


class SupervisorState(Enum):
    """Supervisor lifecycle state."""

    IDLE = "idle"  # No cycle in progress, previous watches (if any) armed
    RESOLVING = "resolving"  # Walk -> reconcile -> install in progress
    RUNNING = "running"  # Exactly one child process alive
    TERMINATING = "terminating"  # Child signalled, waiting for its exit


class CycleStatus(Enum):
    """Result of one discovery/install cycle."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailurePolicy(Enum):
    """
    What a failed cycle means for the process.

    FATAL: report and exit non-zero (single run).
    IDLE: report and wait on the previously armed watches (watch mode).
    """

    FATAL = "fatal"
    IDLE = "idle"
