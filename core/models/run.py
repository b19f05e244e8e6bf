"""
Run Models - Async Create-Bridge Lifecycle

A run is one invocation of the create-bridge automation. The HTTP trigger
creates it (queued), the queue worker mutates it at each phase, and every
version is persisted as runs/<runId>.json. JSON keys are camelCase because
callers poll the document directly through /api/run-status.

Exports:
    RunStatus: Persisted run status document
    RunQueueMessage: Message passed from the HTTP trigger to the worker
    MsAuthInfo: Auth-state metadata recorded on a run
    ProcessResult: Outcome of one automation process
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.defaults import RunDefaults
from exceptions import ContractViolationError
from .enums import RunState, AuthStateSource
from .auth_state import AuthStateVersion


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MsAuthInfo(BaseModel):
    """What the worker learned about MSAuth.json for this run (never its contents)."""

    model_config = ConfigDict(populate_by_name=True)

    source: Optional[AuthStateSource] = None
    bytes: Optional[int] = None
    validated: bool = False
    cookies_count: Optional[int] = Field(default=None, alias="cookiesCount")
    origins_count: Optional[int] = Field(default=None, alias="originsCount")
    keys_preview: Optional[List[str]] = Field(default=None, alias="keysPreview")
    version: Optional[AuthStateVersion] = None


class RunQueueMessage(BaseModel):
    """Queue payload: {runId, incidentId, browserName, timeoutMs, enqueuedAt}."""

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(alias="runId", min_length=1)
    incident_id: str = Field(alias="incidentId", min_length=1)
    browser_name: Optional[str] = Field(default=None, alias="browserName")
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs")
    enqueued_at: Optional[datetime] = Field(default=None, alias="enqueuedAt")

    @field_validator("run_id", "incident_id", mode="before")
    @classmethod
    def stringify_id(cls, v: Any) -> Any:
        """Incident numbers arrive as JSON numbers from some callers."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v)) if float(v).is_integer() else str(v)
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("timeout_ms", mode="before")
    @classmethod
    def lenient_timeout(cls, v: Any) -> Optional[int]:
        """Anything that is not a positive number of milliseconds falls back to the default."""
        if v is None or isinstance(v, bool):
            return None
        try:
            value = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return None
        return value if value > 0 else None

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True, exclude_none=True))


class ProcessResult(BaseModel):
    """
    Outcome of the automation child process.

    Exit codes below zero are produced locally:
        -1 killed on timeout without an exit code
        -2 exited without an exit code
        -3 process could not be started
        -4 automation runtime (playwright package) not installed
    """

    model_config = ConfigDict(populate_by_name=True)

    exit_code: int = Field(alias="exitCode")
    output: str = ""
    timed_out: bool = Field(default=False, alias="timedOut")

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


class RunStatus(BaseModel):
    """
    Persisted status of a run.

    Each write replaces the whole document, so the worker always writes a
    complete record built from the previous one.
    """

    model_config = ConfigDict(populate_by_name=True)

    run_id: str = Field(alias="runId", min_length=1)
    incident_id: str = Field(alias="incidentId")
    state: RunState = RunState.QUEUED
    mode: str = RunDefaults.MODE

    created_at: datetime = Field(default_factory=_utc_now, alias="createdAt")
    enqueued_at: Optional[datetime] = Field(default=None, alias="enqueuedAt")
    started_at: Optional[datetime] = Field(default=None, alias="startedAt")
    ended_at: Optional[datetime] = Field(default=None, alias="endedAt")
    updated_at: datetime = Field(default_factory=_utc_now, alias="updatedAt")

    browser_name: Optional[str] = Field(default=None, alias="browserName")
    timeout_ms: Optional[int] = Field(default=None, alias="timeoutMs")

    ms_auth: Optional[MsAuthInfo] = Field(default=None, alias="msAuth")
    ms_auth_config: Optional[Dict[str, Any]] = Field(default=None, alias="msAuthConfig")

    logs: Optional[List[str]] = None
    output: Optional[str] = None
    exit_code: Optional[int] = Field(default=None, alias="exitCode")
    timed_out: Optional[bool] = Field(default=None, alias="timedOut")
    error: Optional[str] = None
    report: Optional[Dict[str, Any]] = None

    @property
    def is_terminal(self) -> bool:
        from core.logic.transitions import is_run_terminal
        return is_run_terminal(self.state)

    def can_transition_to(self, new_state: RunState) -> bool:
        from core.logic.transitions import can_run_transition
        return can_run_transition(self.state, new_state)

    def advance(self, new_state: RunState, **updates: Any) -> "RunStatus":
        """
        Copy of this status moved to new_state, updated_at refreshed.

        Raises:
            ContractViolationError: new_state is not reachable from the current state
        """
        if not self.can_transition_to(new_state):
            raise ContractViolationError(
                f"Illegal run transition {self.state.value} -> {new_state.value} for run {self.run_id}"
            )
        updates.setdefault('updated_at', _utc_now())
        return self.model_copy(update={'state': new_state, **updates})

    def to_json_dict(self) -> Dict[str, Any]:
        """Wire representation (camelCase, unset optionals omitted)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_json_dict(), indent=2)

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "RunStatus":
        return cls.model_validate_json(data)
