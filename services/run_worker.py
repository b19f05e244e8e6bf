# ============================================================================
# RUN WORKER
# ============================================================================
# STATUS: Service - Queue-driven create-bridge run lifecycle
# PURPOSE: queued -> running -> succeeded | failed | timedOut
# DEPENDENCIES: services.auth_state, services.automation_runner,
#               infrastructure.run_status, infrastructure.report_uploader
# ============================================================================
"""
Run Worker.

Consumes one run message from the queue and drives the run to a terminal
state, persisting the status document at every phase:

    1. Parse message (no runId -> logged and dropped,
       otherwise unusable -> failed)
    2. Skip redelivered messages for runs that are already terminal
    3. Write running
    4. Resolve MSAuth.json (strict)          -> failed on error
    5. Validate its shape                    -> failed on error
    6. Run the automation with a hard timeout
    7. Upload the HTML report (best effort)
    8. Write succeeded / failed / timedOut

Once running is written, any unexpected error also ends the run as failed.

The worker never raises past process_message: a poison message would only
be retried into the same failure, and the status document already carries
the error. Status writes are best effort; a failed write is logged as a
step and the run continues.

Exports:
    RunWorker: Worker with injectable collaborators
    process_run_message: Entry point used by the queue trigger
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from config import get_config
from config.defaults import BrowserDefaults, RunDefaults
from core.logic.output import append_bounded, truncate_output
from core.logic.transitions import classify_outcome
from core.models import MsAuthInfo, RunQueueMessage, RunState, RunStatus
from exceptions import AuthStateValidationError
from infrastructure.blob import BlobRepository
from infrastructure.report_uploader import ReportUploader
from infrastructure.run_status import RunStatusRepository
from util_logger import LoggerFactory, ComponentType, StepLog
from .auth_state import resolve_auth_state, validate_auth_state_file, describe_auth_sources
from .automation_runner import run_automation, FUNCTION_ROOT

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "RunWorker")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RunWorker:
    """
    Executes queued create-bridge runs.

    Collaborators are injectable so tests can run the full lifecycle with
    an in-memory status store and a fake automation runner.
    """

    def __init__(
        self,
        status_repo: Optional[RunStatusRepository] = None,
        auth_resolver: Callable[..., Any] = resolve_auth_state,
        runner: Callable[..., Any] = run_automation,
        report_uploader: Optional[ReportUploader] = None,
        function_root: Path = FUNCTION_ROOT,
    ):
        self._status_repo = status_repo
        self.auth_resolver = auth_resolver
        self.runner = runner
        self._report_uploader = report_uploader
        self.function_root = Path(function_root)

    # ========================================================================
    # COLLABORATORS
    # ========================================================================

    @property
    def status_repo(self) -> RunStatusRepository:
        if self._status_repo is None:
            self._status_repo = RunStatusRepository.from_config()
        return self._status_repo

    def _uploader(self) -> Optional[ReportUploader]:
        if self._report_uploader is None:
            config = get_config()
            if not config.storage.connection_string:
                return None
            self._report_uploader = ReportUploader(
                BlobRepository.from_connection_string(config.storage.connection_string),
                config.storage,
                config.runtime,
            )
        return self._report_uploader

    # ========================================================================
    # STATUS HELPERS
    # ========================================================================

    def _safe_write(self, status: RunStatus, steps: StepLog) -> bool:
        status.logs = append_bounded(None, steps.lines)
        try:
            self.status_repo.write(status)
            return True
        except Exception as e:
            steps("write_status_failed", {"runId": status.run_id, "message": str(e)})
            return False

    def _safe_read(self, run_id: str, steps: StepLog) -> Optional[RunStatus]:
        try:
            return self.status_repo.read(run_id)
        except Exception as e:
            steps("read_status_failed", {"runId": run_id, "message": str(e)})
            return None

    def _fail(self, status: RunStatus, error: str, steps: StepLog) -> RunStatus:
        now = _now()
        failed = status.advance(RunState.FAILED, ended_at=now, updated_at=now, error=error)
        self._safe_write(failed, steps)
        logger.warning(f"❌ Run {status.run_id} failed: {error}")
        return failed

    # ========================================================================
    # MESSAGE PARSING
    # ========================================================================

    @staticmethod
    def _decode(message: Union[str, bytes, Dict[str, Any]], steps: StepLog) -> Optional[Dict[str, Any]]:
        if isinstance(message, (str, bytes)):
            try:
                payload = json.loads(message)
            except (ValueError, UnicodeDecodeError) as e:
                steps("invalid_message_json", {"message": str(e)})
                return None
        else:
            payload = message

        if not isinstance(payload, dict):
            steps("invalid_message_json", {"message": "message is not a JSON object"})
            return None
        return payload

    def _reject(self, payload: Dict[str, Any], error: ValidationError, steps: StepLog) -> Optional[RunStatus]:
        """
        Fail the run named by an unusable message.

        Without a usable runId there is no status document to update and the
        message is only logged.
        """
        raw_run_id = payload.get("runId")
        fields = sorted({str(err["loc"][0]) for err in error.errors() if err.get("loc")})
        steps("invalid_message_fields", {"runId": raw_run_id, "incidentId": payload.get("incidentId"), "fields": fields})

        if isinstance(raw_run_id, bool) or not isinstance(raw_run_id, (str, int)) or not str(raw_run_id).strip():
            return None

        run_id = str(raw_run_id).strip()
        existing = self._safe_read(run_id, steps)
        if existing is not None and existing.is_terminal:
            return existing

        incident = payload.get("incidentId")
        status = existing or RunStatus(
            run_id=run_id,
            incident_id="" if incident is None else str(incident),
        )
        return self._fail(status, f"Invalid run message: bad or missing {', '.join(fields)}", steps)

    @staticmethod
    def _resolve_timeout(msg: RunQueueMessage) -> int:
        if msg.timeout_ms and msg.timeout_ms > 0:
            return msg.timeout_ms
        browser = get_config().browser
        return browser.async_timeout_ms or browser.sync_timeout_ms or RunDefaults.ASYNC_TIMEOUT_MS

    @staticmethod
    def _resolve_browser(msg: RunQueueMessage) -> str:
        name = (msg.browser_name or get_config().browser.browser or "").strip()
        return name or BrowserDefaults.BROWSER

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    def process_message(self, message: Union[str, bytes, Dict[str, Any]],
                        invocation_id: Optional[str] = None) -> Optional[RunStatus]:
        """
        Drive one run to a terminal state.

        Returns:
            The last status written (or attempted), None when the message was
            dropped. Never raises.
        """
        steps = StepLog(logger)
        try:
            return self._process(message, invocation_id, steps)
        except Exception as e:
            logger.exception(f"💥 Unexpected worker error: {e}")
            steps("worker_unexpected_error", {"message": str(e)})
            return None

    def _process(self, message, invocation_id: Optional[str], steps: StepLog) -> Optional[RunStatus]:
        steps("msg_received", f"invocationId={invocation_id}")

        payload = self._decode(message, steps)
        if payload is None:
            return None

        try:
            msg = RunQueueMessage.model_validate(payload)
        except ValidationError as e:
            return self._reject(payload, e, steps)

        steps("msg_parsed", {"runId": msg.run_id, "incidentId": msg.incident_id})

        existing = self._safe_read(msg.run_id, steps)
        if existing is not None and existing.is_terminal:
            steps("run_already_terminal", {"runId": msg.run_id, "state": existing.state.value})
            return existing

        browser_name = self._resolve_browser(msg)
        timeout_ms = self._resolve_timeout(msg)
        now = _now()

        status = RunStatus(
            run_id=msg.run_id,
            incident_id=msg.incident_id,
            state=RunState.RUNNING,
            created_at=existing.created_at if existing else (msg.enqueued_at or now),
            enqueued_at=msg.enqueued_at,
            started_at=now,
            updated_at=now,
            browser_name=browser_name,
            timeout_ms=timeout_ms,
        )
        self._safe_write(status, steps)
        steps("status_set_running", {"runId": msg.run_id, "timeoutMs": timeout_ms, "browserName": browser_name})

        try:
            return self._execute(msg, status, steps)
        except Exception as e:
            logger.exception(f"💥 Run {msg.run_id} aborted: {e}")
            steps("run_aborted", {"runId": msg.run_id, "message": str(e)})
            return self._fail(status, f"Automation run failed: {e}", steps)

    def _execute(self, msg: RunQueueMessage, status: RunStatus, steps: StepLog) -> RunStatus:
        """Auth state, automation and report for a run already marked running."""
        browser_name = status.browser_name
        timeout_ms = status.timeout_ms

        # Auth state
        try:
            configured, _ = describe_auth_sources(self.function_root)
            status.ms_auth_config = configured
            steps("msauth_ensure_start")
            resolution = self.auth_resolver(self.function_root, strict=True, log=steps)
        except Exception as e:
            steps("msauth_ensure_failed", {"message": str(e)})
            return self._fail(status, f"Failed to fetch MSAuth.json: {e}", steps)

        if resolution is None:
            steps("msauth_missing_after_ensure")
            return self._fail(status, "Auth state resolution produced no file (no MSAuth.json available).", steps)

        steps("msauth_ensure_ok", f"path={resolution.path}")

        try:
            summary = validate_auth_state_file(resolution.path)
        except AuthStateValidationError as e:
            steps("msauth_invalid", {"path": resolution.path, "message": str(e)})
            return self._fail(status, f"MSAuth.json invalid: {e}", steps)

        steps("msauth_file_stat", {"bytes": summary.bytes})
        steps("msauth_valid_json", summary.model_dump(by_alias=True, exclude={"bytes"}))

        status.ms_auth = MsAuthInfo(
            source=resolution.source,
            bytes=summary.bytes,
            validated=True,
            cookies_count=summary.cookies_count,
            origins_count=summary.origins_count,
            keys_preview=summary.keys_preview,
            version=resolution.version,
        )

        # Automation
        report_dir = str(Path(get_config().browser.report_dir) / msg.run_id)
        steps("playwright_start", {"incidentId": msg.incident_id, "browserName": browser_name})
        result = self.runner(
            msg.incident_id,
            browser_name=browser_name,
            timeout_ms=timeout_ms,
            msauth_path=resolution.path,
            report_dir=report_dir,
        )
        steps("playwright_done", {"exitCode": result.exit_code, "timedOut": result.timed_out})

        report = self._upload_report(msg.run_id, report_dir, steps)

        state = classify_outcome(result.exit_code, result.timed_out)
        ended = _now()
        final = status.advance(
            state,
            ended_at=ended,
            updated_at=ended,
            exit_code=result.exit_code,
            timed_out=result.timed_out,
            output=truncate_output(result.output),
            report=report,
        )
        steps("status_final_written", {"state": state.value})
        self._safe_write(final, steps)
        logger.info(f"✅ Run {msg.run_id} finished: {state.value}")
        return final

    def _upload_report(self, run_id: str, report_dir: str, steps: StepLog) -> Dict[str, Any]:
        try:
            uploader = self._uploader()
            if uploader is None:
                summary = {'ok': False, 'skipped': True, 'reason': 'AzureWebJobsStorage not set'}
            else:
                summary = uploader.upload(run_id, report_dir)
        except Exception as e:
            summary = {'ok': False, 'error': str(e)}

        steps("report_upload", {key: summary.get(key) for key in ('ok', 'skipped', 'reason', 'fileCount', 'error')
                                if key in summary})
        return summary


def process_run_message(message: Union[str, bytes, Dict[str, Any]],
                        invocation_id: Optional[str] = None) -> Optional[RunStatus]:
    """Queue trigger entry point."""
    return RunWorker().process_message(message, invocation_id=invocation_id)


__all__ = ['RunWorker', 'process_run_message']
