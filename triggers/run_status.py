"""
Run Status Trigger.

GET /api/run-status?runId=...

Returns the stored status document. Auth metadata (msAuth, msAuthConfig)
and the step log are omitted unless asked for with includeMsAuth=1 and
includeLogs=1.

Exports:
    RunStatusTrigger: Trigger class
    run_status_trigger: Singleton instance used by function_app.py
"""

from typing import List, Optional

import azure.functions as func

from infrastructure.run_status import RunStatusRepository
from .http_base import BaseHttpTrigger, TriggerResponse


class RunStatusTrigger(BaseHttpTrigger):
    """Reads runs/<runId>.json."""

    def __init__(self, status_repo: Optional[RunStatusRepository] = None):
        super().__init__("run_status")
        self._status_repo = status_repo

    @property
    def status_repo(self) -> RunStatusRepository:
        if self._status_repo is None:
            self._status_repo = RunStatusRepository.from_config()
        return self._status_repo

    def get_allowed_methods(self) -> List[str]:
        return ["GET"]

    def process_request(self, req: func.HttpRequest, **bindings) -> TriggerResponse:
        run_id = self.get_param(req, "runId", "id")
        if not run_id:
            return TriggerResponse({'ok': False, 'error': 'Missing required query parameter: runId'},
                                   status_code=400)

        include_ms_auth = self.is_truthy_param(req, "includeMsAuth", "msauth", "includeAuth")
        include_logs = self.is_truthy_param(req, "includeLogs", "logs")

        try:
            status = self.status_repo.read(run_id)
        except ValueError:
            raise
        except Exception as e:
            self.logger.error(f"❌ Failed to read run status {run_id}: {e}")
            return TriggerResponse({'ok': False, 'error': f'Failed to read run status: {e}'}, status_code=500)

        if status is None:
            return TriggerResponse({'ok': False, 'error': 'Run not found', 'runId': run_id}, status_code=404)

        body = status.to_json_dict()
        if not include_ms_auth:
            body.pop("msAuth", None)
            body.pop("msAuthConfig", None)
        if not include_logs:
            body.pop("logs", None)

        return TriggerResponse(body)


run_status_trigger = RunStatusTrigger()
