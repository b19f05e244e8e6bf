# ============================================================================
# AUTOMATION PROCESS RUNNER
# ============================================================================
# STATUS: Service - Runs the create-bridge flow in a child process
# PURPOSE: Hard timeout and bounded output capture around the browser run
# DEPENDENCIES: subprocess, core.logic.output, core.models.run, config
# ============================================================================
"""
Automation Process Runner.

The browser flow runs as `python -m automation.create_bridge` in a child
process rather than in the Functions worker itself. The child is killed
when it exceeds its timeout; its exit code (0 success, 1 failure, 2 auth)
becomes the run outcome.

Exports:
    run_automation: Spawn the flow and wait for it with a timeout
    build_automation_env: Environment handed to the child
"""

import importlib.util
import os
import subprocess
import sys
import threading
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from config import RuntimeConfig
from config.defaults import BrowserDefaults, RunDefaults
from core.logic.output import OutputCollector
from core.models import ProcessResult
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "AutomationRunner")

FUNCTION_ROOT = Path(__file__).resolve().parent.parent

AUTOMATION_MODULE = "automation.create_bridge"

# Interpreter hooks inherited from the host that must not leak into the child
_STRIPPED_ENV_VARS = ("PYTHONSTARTUP", "PYTHONINSPECT")


def default_command() -> List[str]:
    return [sys.executable, "-m", AUTOMATION_MODULE]


def build_automation_env(
    incident_id: str,
    browser_name: Optional[str] = None,
    msauth_path: Optional[str] = None,
    report_dir: Optional[str] = None,
    extra_env: Optional[Dict[str, str]] = None,
    base_env: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """
    Child environment: host env plus INCIDENT_NUMBER, BROWSER, MSAUTH_PATH
    and REPORT_DIR. On Playwright Workspaces the run is always headless.
    """
    env = dict(os.environ if base_env is None else base_env)
    env["INCIDENT_NUMBER"] = str(incident_id)
    env["BROWSER"] = str(browser_name or env.get("BROWSER") or BrowserDefaults.BROWSER)
    if msauth_path:
        env["MSAUTH_PATH"] = str(msauth_path)
    if report_dir:
        env["REPORT_DIR"] = str(report_dir)
    if extra_env:
        env.update({key: str(value) for key, value in extra_env.items()})

    if env.get("PLAYWRIGHT_SERVICE_URL"):
        env["HEADED"] = "0"
        env["PWHEADLESS"] = "1"

    for name in _STRIPPED_ENV_VARS:
        env.pop(name, None)

    return env


def _pump(stream, collector: OutputCollector) -> None:
    for line in iter(stream.readline, ""):
        collector.append(line)
    stream.close()


def run_automation(
    incident_id: str,
    browser_name: Optional[str] = None,
    timeout_ms: int = RunDefaults.ASYNC_TIMEOUT_MS,
    msauth_path: Optional[str] = None,
    report_dir: Optional[str] = None,
    extra_env: Optional[Dict[str, str]] = None,
    command: Optional[Sequence[str]] = None,
    cwd: Optional[Path] = None,
) -> ProcessResult:
    """
    Run the create-bridge flow for one incident.

    Args:
        incident_id: Incident to open
        browser_name: edge (default), chrome or a Playwright channel
        timeout_ms: Hard limit; the child is killed when it is exceeded
        msauth_path: Storage-state file for the browser context
        report_dir: Where the flow writes index.html and screenshots
        extra_env: Additional variables for the child
        command: Override for the child command line (tests)
        cwd: Working directory (defaults to the function root)

    Returns:
        ProcessResult. Exit codes: -1 killed on timeout, -2 ended without
        a code, -3 could not start, -4 playwright package not installed.
    """
    if command is None:
        if importlib.util.find_spec("playwright") is None:
            logger.error("❌ playwright package is not installed")
            return ProcessResult(
                exit_code=-4,
                output="Playwright for Python is not installed in this environment "
                       "(pip install playwright && playwright install).",
                timed_out=False,
            )
        command = default_command()

    env = build_automation_env(incident_id, browser_name, msauth_path, report_dir, extra_env)
    collector = OutputCollector(BrowserDefaults.PROCESS_OUTPUT_LIMIT)

    logger.info(f"🚀 Starting automation for incident {incident_id} (timeout {timeout_ms}ms)")
    try:
        process = subprocess.Popen(
            list(command),
            cwd=str(cwd or FUNCTION_ROOT),
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as e:
        logger.error(f"❌ Failed to start automation: {e}")
        return ProcessResult(exit_code=-3, output=f"Failed to start automation: {e}", timed_out=False)

    reader = threading.Thread(target=_pump, args=(process.stdout, collector), daemon=True)
    reader.start()

    timed_out = False
    try:
        process.wait(timeout=timeout_ms / 1000.0)
    except subprocess.TimeoutExpired:
        timed_out = True
        logger.warning(f"⏱️ Automation for incident {incident_id} exceeded {timeout_ms}ms; killing")
        process.kill()
        process.wait()

    reader.join(timeout=5)

    code = process.returncode
    if code is None or code < 0:
        # Negative return codes mean the child ended on a signal
        code = -1 if timed_out else -2

    logger.info(f"🏁 Automation finished for incident {incident_id}: exit={code} timedOut={timed_out}")
    return ProcessResult(exit_code=code, output=collector.text(), timed_out=timed_out)


__all__ = ['run_automation', 'build_automation_env', 'default_command', 'FUNCTION_ROOT']
