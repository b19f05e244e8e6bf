"""
Core Business Logic Package.

Contains business logic that operates on pure data models.
Separated from models to maintain clean architecture.

Exports:
    State transitions: can_run_transition, is_run_terminal, classify_outcome
    Output bounding: truncate_output, OutputCollector, append_bounded
"""

from .transitions import (
    can_run_transition,
    get_run_terminal_states,
    is_run_terminal,
    classify_outcome
)

from .output import (
    truncate_output,
    OutputCollector,
    append_bounded
)

__all__ = [
    'can_run_transition',
    'get_run_terminal_states',
    'is_run_terminal',
    'classify_outcome',
    'truncate_output',
    'OutputCollector',
    'append_bounded',
]
