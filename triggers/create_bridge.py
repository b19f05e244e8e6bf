"""
Synchronous Create-Bridge Triggers.

Three endpoints run the automation inside the HTTP request and answer with
its outcome ({ok, incidentId, exitCode, timedOut, output}; 200 on exit 0,
500 otherwise):

    /api/create-bridge-msauth     Stored session bundled at the function root
    /api/create-bridge            Manual sign-in (operator at the browser)
    /api/create-bridge-workspace  Remote browser on Playwright Workspaces,
                                  session resolved through the auth chain

Exports:
    CreateBridgeSyncTrigger: Shared trigger class, one instance per mode
    create_bridge_msauth_trigger, create_bridge_manual_trigger,
    create_bridge_workspace_trigger: Instances used by function_app.py
"""

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import azure.functions as func

from config import get_config
from config.defaults import AuthStateDefaults, BrowserDefaults
from exceptions import PreconditionFailedError
from services.auth_state import resolve_auth_state
from services.automation_runner import run_automation, FUNCTION_ROOT
from .create_bridge_async import INCIDENT_PARAM_NAMES
from .http_base import BaseHttpTrigger, TriggerResponse


class SyncMode(str, Enum):
    MSAUTH = "create-bridge-msauth"
    MANUAL = "create-bridge"
    WORKSPACE = "create-bridge-workspace"


class CreateBridgeSyncTrigger(BaseHttpTrigger):
    """Runs the create-bridge automation and waits for it."""

    def __init__(self, mode: SyncMode, runner: Callable[..., Any] = run_automation,
                 function_root: Path = FUNCTION_ROOT):
        super().__init__(mode.value.replace("-", "_"))
        self.mode = mode
        self.runner = runner
        self.function_root = Path(function_root)

    def get_allowed_methods(self) -> List[str]:
        return ["GET", "POST"]

    def process_request(self, req: func.HttpRequest, **bindings) -> TriggerResponse:
        incident_id = self.get_param(req, *INCIDENT_PARAM_NAMES)
        if not incident_id:
            return TriggerResponse({
                'ok': False,
                'error': 'Missing required query parameter: incidentId',
                'example': f'/api/{self.mode.value}?incidentId=155071351',
            }, status_code=400)

        if self.mode is SyncMode.MSAUTH:
            kwargs = self._msauth_run()
        elif self.mode is SyncMode.MANUAL:
            kwargs = self._manual_run()
        else:
            kwargs = self._workspace_run()

        self.logger.info(
            f"▶️ Triggering create-bridge ({self.mode.value}) for incident {incident_id} "
            f"browser={kwargs.get('browser_name')} timeout={kwargs['timeout_ms']}ms"
        )
        result = self.runner(incident_id, **kwargs)

        if not result.ok:
            self.logger.warning(
                f"⚠️ Automation failed (exitCode={result.exit_code}, timedOut={result.timed_out}). "
                f"Output (truncated): {result.output[:5000]}"
            )

        return TriggerResponse({
            'ok': result.exit_code == 0,
            'incidentId': incident_id,
            'exitCode': result.exit_code,
            'timedOut': result.timed_out,
            'output': result.output,
        }, status_code=200 if result.exit_code == 0 else 500)

    # ========================================================================
    # PER-MODE RUN SETTINGS
    # ========================================================================

    def _headed_env(self) -> Dict[str, str]:
        headed = get_config().browser.headed
        return {"HEADED": "0" if headed is False else "1"}

    def _msauth_run(self) -> Dict[str, Any]:
        auth_file = self.function_root / AuthStateDefaults.FILE_NAME
        if not auth_file.is_file():
            raise PreconditionFailedError(
                "MSAuth.json not found in the function root.",
                details={
                    'expectedPath': str(auth_file),
                    'hint': 'Run scripts/save_auth_state.py to generate MSAuth.json before calling this endpoint.',
                },
            )

        browser = get_config().browser
        return {
            'browser_name': browser.browser or BrowserDefaults.BROWSER,
            'timeout_ms': browser.sync_timeout_ms or BrowserDefaults.SYNC_TIMEOUT_MS,
            'msauth_path': str(auth_file),
            'extra_env': self._headed_env(),
        }

    def _manual_run(self) -> Dict[str, Any]:
        browser = get_config().browser
        return {
            'browser_name': browser.browser or BrowserDefaults.MANUAL_AUTH_BROWSER,
            'timeout_ms': browser.sync_timeout_ms or BrowserDefaults.SYNC_TIMEOUT_MS,
            'extra_env': {**self._headed_env(), "AUTH_MODE": "manual"},
        }

    def _workspace_run(self) -> Dict[str, Any]:
        if not get_config().runtime.playwright_service_url:
            raise PreconditionFailedError(
                "PLAYWRIGHT_SERVICE_URL is not set. Configure it in Function App settings."
            )

        try:
            resolution = resolve_auth_state(
                self.function_root,
                strict=True,
                log=lambda line: self.logger.info(f"[msauth] {line}"),
            )
        except Exception as e:
            raise RuntimeError(f"Failed to fetch MSAuth.json: {e}") from e

        return {
            'browser_name': get_config().browser.browser or BrowserDefaults.BROWSER,
            'timeout_ms': BrowserDefaults.WORKSPACE_TIMEOUT_MS,
            'msauth_path': resolution.path if resolution else None,
        }


create_bridge_msauth_trigger = CreateBridgeSyncTrigger(SyncMode.MSAUTH)
create_bridge_manual_trigger = CreateBridgeSyncTrigger(SyncMode.MANUAL)
create_bridge_workspace_trigger = CreateBridgeSyncTrigger(SyncMode.WORKSPACE)
