# ============================================================================
# CREATE BRIDGE FLOW
# ============================================================================
# STATUS: Automation - Child-process entry point (python -m automation.create_bridge)
# PURPOSE: Open the incident and create its Teams bridge, exit with an outcome code
# DEPENDENCIES: playwright, automation.session, automation.incident_page, config
# ============================================================================
"""
Create Bridge Flow.

Run by services.automation_runner as a child process. Reads its inputs
from the environment (INCIDENT_NUMBER, BROWSER, MSAUTH_PATH, REPORT_DIR,
HEADED, AUTH_MODE, PLAYWRIGHT_SERVICE_URL, CDP settings) and walks seven
steps:

    1. Open the portal and get past the sign-in chooser
    2. Search the incident and open its details page
    3. Click "Create bridge" (a visible "Join bridge" ends the run as success)
    4. Select the Engineering collaboration option
    5. Click Save
    6. Wait for the success message
    7. Done

Exit codes:
    0  Bridge created, bridge already existed, or run skipped (no session)
    1  Automation failure
    2  Stored session missing, invalid or expired
"""

import sys
from pathlib import Path
from typing import Callable, Optional

from playwright.sync_api import Error as PlaywrightError

from config import BrowserConfig
from config.defaults import AuthStateDefaults, BrowserDefaults
from exceptions import AuthStateError, AutomationError
from services.auth_state import get_auth_write_path, validate_auth_state_file
from util_logger import LoggerFactory, ComponentType, log_exceptions
from .incident_page import IncidentPage
from .report import RunReport
from .session import BrowserSession, SessionMode, select_mode

logger = LoggerFactory.create_logger(ComponentType.AUTOMATION, "CreateBridge")

FUNCTION_ROOT = Path(__file__).resolve().parent.parent

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_AUTH = 2

TOTAL_STEPS = 7
ENGINEERING_DELAY_MS = 3_000
SAVE_DELAY_MS = 4_000


def resolve_auth_file(config: BrowserConfig, function_root: Path = FUNCTION_ROOT) -> Path:
    """MSAUTH_PATH, then the bundled function-root file, then the download location."""
    if config.msauth_path:
        return Path(config.msauth_path).resolve()
    bundled = Path(function_root) / AuthStateDefaults.FILE_NAME
    if bundled.is_file():
        return bundled
    return get_auth_write_path(function_root)


def _is_closed_page_error(error: Exception) -> bool:
    return "has been closed" in str(error)


class CreateBridgeFlow:
    """One run of the create-bridge steps against an open BrowserSession."""

    def __init__(self, session: BrowserSession, incident_id: str, config: BrowserConfig,
                 report: RunReport, log: Callable[[str], object]):
        self.session = session
        self.incident_id = incident_id
        self.config = config
        self.report = report
        self.log = log

    def _incident_page(self) -> IncidentPage:
        return IncidentPage(
            self.session.ensure_open_page(),
            log=self.log,
            interactive_login=self.session.mode is SessionMode.MANUAL,
        )

    def _step(self, number: int, name: str) -> None:
        self.log(f"step {number}/{TOTAL_STEPS} {name}")

    def _goto_search(self) -> None:
        try:
            self._incident_page().goto_search(self.config.overview_url)
        except PlaywrightError as e:
            if not _is_closed_page_error(e):
                raise
            self._incident_page().goto_search(self.config.overview_url)

    def _search_and_open(self) -> IncidentPage:
        def run_once() -> IncidentPage:
            incident = self._incident_page()
            incident.search_incident(self.incident_id)
            incident.wait_for_details(self.incident_id)
            return incident

        try:
            return run_once()
        except PlaywrightError as e:
            if not _is_closed_page_error(e):
                raise
            self._goto_search()
            return run_once()

    def run(self) -> str:
        """Returns "created" or "already-created"; raises on failure."""
        self._step(1, "gotoSearch")
        self._goto_search()

        self._step(2, "search + open details")
        incident = self._search_and_open()

        self._step(3, "click Create bridge")
        action = incident.click_create_bridge()
        if action.already_created:
            self.log(action.message)
            return "already-created"

        page = self.session.ensure_open_page()

        self._step(4, "select Engineering option")
        page.wait_for_timeout(ENGINEERING_DELAY_MS)
        incident.select_engineering_option()

        self._step(5, "click Save")
        page.wait_for_timeout(SAVE_DELAY_MS)
        incident.click_save()

        self._step(6, "wait for success message")
        if not incident.wait_for_success_message(BrowserDefaults.SUCCESS_TIMEOUT_MS):
            raise AutomationError("Expected Success message after saving Create bridge")

        self._step(7, "Success")
        return "created"


def _capture_failure(session: Optional[BrowserSession], report: RunReport, log: Callable[[str], object]) -> Optional[str]:
    if session is None or session.page is None or session.page.is_closed():
        return None
    path = report.screenshot_path("failure")
    try:
        session.page.screenshot(path=str(path), full_page=True)
    except PlaywrightError as e:
        log(f"failure screenshot not captured: {e}")
        return None
    return str(path)


@log_exceptions(ComponentType.AUTOMATION, "CreateBridge")
def run_create_bridge(incident_id: str, config: Optional[BrowserConfig] = None,
                      function_root: Path = FUNCTION_ROOT) -> int:
    """
    Run the flow for one incident and return its exit code.

    Args:
        incident_id: Incident number to open
        config: Browser settings (defaults to the environment)
        function_root: Where a bundled MSAuth.json may live
    """
    config = config or BrowserConfig.from_environment()
    report = RunReport(Path(config.report_dir), incident_id)

    def log(message: str) -> None:
        logger.info(f"[create-bridge] {message}")
        report.add(message)

    auth_file = resolve_auth_file(config, function_root)
    mode = select_mode(config, auth_file)
    log(f"start incident={incident_id} mode={mode.value} channel={config.channel} authFile={auth_file}")

    if mode is SessionMode.SKIP:
        log("skipped: no MSAuth.json and no CDP settings")
        report.finish("skipped", EXIT_OK)
        return EXIT_OK

    if mode in (SessionMode.WORKSPACES, SessionMode.LOCAL):
        if mode is SessionMode.WORKSPACES and not auth_file.is_file():
            log(f"MSAuth.json is required for a Workspaces run but was not found at {auth_file}")
            report.finish("auth-missing", EXIT_AUTH)
            return EXIT_AUTH
        try:
            summary = validate_auth_state_file(auth_file)
            log(f"storageState bytes={summary.bytes} cookies={summary.cookies_count}")
        except AuthStateError as e:
            log(f"MSAuth.json invalid: {e}")
            report.finish("auth-invalid", EXIT_AUTH)
            return EXIT_AUTH

    session = BrowserSession(config, mode, auth_file=auth_file, log=log)
    try:
        session.open()
        outcome = CreateBridgeFlow(session, incident_id, config, report, log).run()
        report.finish(outcome, EXIT_OK)
        return EXIT_OK
    except AuthStateError as e:
        report.add(f"Auth state rejected: {e}", level="error",
                   screenshot=_capture_failure(session, report, log))
        logger.error(f"❌ Auth state rejected for incident {incident_id}: {e}")
        report.finish("auth-expired", EXIT_AUTH)
        return EXIT_AUTH
    except (AutomationError, PlaywrightError) as e:
        report.add(f"Automation failed: {e}", level="error",
                   screenshot=_capture_failure(session, report, log))
        logger.error(f"❌ Automation failed for incident {incident_id}: {e}")
        report.finish("failed", EXIT_FAILED)
        return EXIT_FAILED
    finally:
        session.close()


def main() -> int:
    config = BrowserConfig.from_environment()
    incident_id = config.incident_number
    if not incident_id:
        logger.error("❌ INCIDENT_NUMBER is not set")
        return EXIT_FAILED
    return run_create_bridge(incident_id, config)


if __name__ == "__main__":
    sys.exit(main())
