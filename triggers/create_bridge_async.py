"""
Async Create-Bridge Trigger.

POST/GET /api/create-bridge-msauth-async?incidentId=...

Records a queued run, hands it to the queue worker through the output
binding, and answers 202 immediately with the URL to poll. The status
document is written before the message is enqueued so run-status never
returns 404 for a runId this endpoint handed out.

Exports:
    CreateBridgeAsyncTrigger: Trigger class
    create_bridge_async_trigger: Singleton instance used by function_app.py
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import azure.functions as func

from config import get_config
from config.defaults import BrowserDefaults
from core.models import RunQueueMessage, RunState, RunStatus
from infrastructure.run_status import RunStatusRepository
from .http_base import BaseHttpTrigger, TriggerResponse

INCIDENT_PARAM_NAMES = ("incidentId", "incidentID", "incident", "id")


def parse_timeout_ms(raw: Optional[str]) -> Optional[int]:
    """Positive integer milliseconds, else ValueError."""
    if raw is None:
        return None
    try:
        value = int(float(raw))
    except (ValueError, OverflowError):
        raise ValueError(f"timeoutMs must be a number of milliseconds, got {raw!r}")
    if value <= 0:
        raise ValueError("timeoutMs must be greater than zero")
    return value


class CreateBridgeAsyncTrigger(BaseHttpTrigger):
    """Queues an asynchronous create-bridge run."""

    def __init__(self, status_repo: Optional[RunStatusRepository] = None):
        super().__init__("create_bridge_msauth_async")
        self._status_repo = status_repo

    @property
    def status_repo(self) -> RunStatusRepository:
        if self._status_repo is None:
            self._status_repo = RunStatusRepository.from_config()
        return self._status_repo

    def get_allowed_methods(self) -> List[str]:
        return ["GET", "POST"]

    def process_request(self, req: func.HttpRequest, run_queue: Optional[func.Out] = None,
                        **bindings) -> TriggerResponse:
        incident_id = self.get_param(req, *INCIDENT_PARAM_NAMES)
        if not incident_id:
            return TriggerResponse({
                'ok': False,
                'error': 'Missing required query parameter: incidentId',
                'example': '/api/create-bridge-msauth-async?incidentId=155071351',
            }, status_code=400)

        browser_name = (self.get_param(req, "browser") or get_config().browser.browser
                        or BrowserDefaults.BROWSER)
        timeout_ms = parse_timeout_ms(self.get_param(req, "timeoutMs", "timeout"))

        run_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)

        status = RunStatus(
            run_id=run_id,
            incident_id=incident_id,
            state=RunState.QUEUED,
            created_at=now,
            enqueued_at=now,
            updated_at=now,
            browser_name=browser_name,
            timeout_ms=timeout_ms,
        )

        try:
            self.status_repo.write(status)
        except Exception as e:
            self.logger.error(f"❌ Failed to persist run status {run_id}: {e}")
            return TriggerResponse({'ok': False, 'error': f'Failed to persist run status: {e}'}, status_code=500)

        message = RunQueueMessage(
            run_id=run_id,
            incident_id=incident_id,
            browser_name=browser_name,
            timeout_ms=timeout_ms,
            enqueued_at=now,
        )
        if run_queue is None:
            raise RuntimeError("Run queue output binding is not configured")
        run_queue.set(message.to_json())

        self.logger.info(f"📬 Queued run {run_id} for incident {incident_id}")

        status_path = f"/api/run-status?runId={quote(run_id)}"
        base_url = self.get_base_url(req)
        body: Dict[str, Any] = {
            'ok': True,
            'runId': run_id,
            'incidentId': incident_id,
            'statusPath': status_path,
            'statusUrl': f"{base_url}{status_path}" if base_url else None,
            'hint': 'Poll run-status until state is succeeded/failed/timedOut.',
        }
        return TriggerResponse(body, status_code=202)


create_bridge_async_trigger = CreateBridgeAsyncTrigger()
