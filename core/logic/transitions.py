"""
State Transition Logic for Runs.

Contains business rules for valid run state transitions.
Separated from data models for clean architecture.

Exports:
    can_run_transition: Check if run state transition is valid
    get_run_terminal_states: Get terminal states for runs
    is_run_terminal: Check if run is in terminal state
    classify_outcome: Map an automation exit code and timeout flag to a terminal state

Dependencies:
    core.models.enums: RunState
"""

from typing import List

from ..models.enums import RunState


def can_run_transition(current: RunState, target: RunState) -> bool:
    """
    Check if a run can transition from current to target state.

    Args:
        current: Current run state
        target: Target run state

    Returns:
        True if transition is valid, False otherwise
    """
    # Same state is always allowed (status rewrite, e.g. adding logs)
    if current == target:
        return True

    transitions = {
        RunState.QUEUED: [RunState.RUNNING, RunState.FAILED],
        RunState.RUNNING: [
            RunState.SUCCEEDED,
            RunState.FAILED,
            RunState.TIMED_OUT
        ],
        RunState.SUCCEEDED: [],  # Terminal state
        RunState.FAILED: [],  # Terminal state
        RunState.TIMED_OUT: []  # Terminal state
    }

    return target in transitions.get(current, [])


def get_run_terminal_states() -> List[RunState]:
    """Get list of terminal run states."""
    return [RunState.SUCCEEDED, RunState.FAILED, RunState.TIMED_OUT]


def is_run_terminal(state: RunState) -> bool:
    """Check if run state is terminal."""
    return state in get_run_terminal_states()


def classify_outcome(exit_code: int, timed_out: bool) -> RunState:
    """
    Terminal state for a finished automation process.

    The timeout flag wins over the exit code: a process killed on timeout
    can still report 0 on some platforms.
    """
    if timed_out:
        return RunState.TIMED_OUT
    if exit_code == 0:
        return RunState.SUCCEEDED
    return RunState.FAILED
