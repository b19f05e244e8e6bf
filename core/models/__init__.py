"""
Core Data Models Package.

Contains pure data structures without business logic.
All business logic is in the core.logic package.

Exports:
    RunState, AuthStateSource: Enums
    RunStatus, RunQueueMessage, MsAuthInfo, ProcessResult: Run lifecycle models
    AuthStateResolution, AuthStateSummary, AuthStateVersion: Auth state models
"""

from .enums import RunState, AuthStateSource

from .auth_state import (
    AuthStateVersion,
    AuthStateResolution,
    AuthStateSummary
)

from .run import (
    RunStatus,
    RunQueueMessage,
    MsAuthInfo,
    ProcessResult
)

__all__ = [
    'RunState',
    'AuthStateSource',
    'AuthStateVersion',
    'AuthStateResolution',
    'AuthStateSummary',
    'RunStatus',
    'RunQueueMessage',
    'MsAuthInfo',
    'ProcessResult',
]
