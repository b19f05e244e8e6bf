"""
Pure Enumeration Types for Core Framework.

Defines valid states for create-bridge runs and the sources auth state can
come from. No business logic - pure type definitions only.

Exports:
    RunState: Run lifecycle state enumeration
    AuthStateSource: Where MSAuth.json was obtained
"""

from enum import Enum


class RunState(str, Enum):
    """
    Valid states for a create-bridge run.

    State transitions:
    - QUEUED -> RUNNING -> SUCCEEDED (automation exited 0)
    - QUEUED -> RUNNING -> FAILED (auth, validation or automation failure)
    - QUEUED -> RUNNING -> TIMED_OUT (automation killed on timeout)
    - QUEUED -> FAILED (worker could not start the run)

    Values are the JSON wire values written to runs/<runId>.json.
    """

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timedOut"


class AuthStateSource(str, Enum):
    """Where a usable MSAuth.json came from."""

    LOCAL = "local"
    BLOB_URL = "blobUrl"
    BLOB = "blob"
    KEY_VAULT = "keyVault"
