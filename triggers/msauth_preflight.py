"""
MSAuth Preflight Trigger.

GET /api/msauth-preflight?fetch=1

Diagnoses auth-state availability without running a browser. fetch=0
skips the network refresh and only validates what is already on disk.

Exports:
    msauth_preflight_trigger: Singleton instance used by function_app.py
"""

from pathlib import Path
from typing import List

import azure.functions as func

from services.automation_runner import FUNCTION_ROOT
from services.preflight import run_preflight
from .http_base import BaseHttpTrigger, TriggerResponse


class MsAuthPreflightTrigger(BaseHttpTrigger):

    def __init__(self, function_root: Path = FUNCTION_ROOT):
        super().__init__("msauth_preflight")
        self.function_root = Path(function_root)

    def get_allowed_methods(self) -> List[str]:
        return ["GET"]

    def process_request(self, req: func.HttpRequest, **bindings) -> TriggerResponse:
        raw = (req.params.get("fetch") or "1").strip().lower()
        fetch = raw not in ("0", "false")

        report = run_preflight(self.function_root, fetch=fetch)
        return TriggerResponse(report.body, status_code=report.status_code)


msauth_preflight_trigger = MsAuthPreflightTrigger()
