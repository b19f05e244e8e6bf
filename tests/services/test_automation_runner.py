"""
Automation runner tests.

Real child processes (the current interpreter running a one-liner) stand
in for the browser flow.
"""

import importlib.util
import sys

import pytest

from config.defaults import BrowserDefaults, RunDefaults
from services.automation_runner import build_automation_env, default_command, run_automation


def _python(code):
    return [sys.executable, "-c", code]


class TestBuildAutomationEnv:

    def test_sets_run_variables(self):
        env = build_automation_env("155071351", "chrome", "/tmp/MSAuth.json", "/tmp/report", base_env={})
        assert env == {
            "INCIDENT_NUMBER": "155071351",
            "BROWSER": "chrome",
            "MSAUTH_PATH": "/tmp/MSAuth.json",
            "REPORT_DIR": "/tmp/report",
        }

    def test_browser_falls_back_to_env_then_default(self):
        assert build_automation_env("1", base_env={"BROWSER": "chrome"})["BROWSER"] == "chrome"
        assert build_automation_env("1", base_env={})["BROWSER"] == BrowserDefaults.BROWSER

    def test_workspaces_forces_headless(self):
        env = build_automation_env("1", base_env={
            "PLAYWRIGHT_SERVICE_URL": "wss://eastus.api.playwright.microsoft.com/browsers",
            "HEADED": "1",
        })
        assert env["HEADED"] == "0"
        assert env["PWHEADLESS"] == "1"

    def test_strips_interpreter_hooks(self):
        env = build_automation_env("1", base_env={"PYTHONSTARTUP": "/x.py", "PYTHONINSPECT": "1", "KEEP": "y"})
        assert "PYTHONSTARTUP" not in env
        assert "PYTHONINSPECT" not in env
        assert env["KEEP"] == "y"

    def test_extra_env_stringified(self):
        env = build_automation_env("1", extra_env={"AUTH_MODE": "manual", "PORT": 9222}, base_env={})
        assert env["AUTH_MODE"] == "manual"
        assert env["PORT"] == "9222"

    def test_default_command(self):
        assert default_command() == [sys.executable, "-m", "automation.create_bridge"]


class TestRunAutomation:

    def test_exit_code_and_output(self):
        result = run_automation(
            "155071351",
            command=_python("import os, sys; print('incident', os.environ['INCIDENT_NUMBER']); sys.exit(3)"),
            timeout_ms=30_000,
        )
        assert result.exit_code == 3
        assert result.timed_out is False
        assert "incident 155071351" in result.output
        assert result.ok is False

    def test_success(self):
        result = run_automation("1", command=_python("print('step 7/7 Success')"), timeout_ms=30_000)
        assert result.ok is True
        assert result.output.strip() == "step 7/7 Success"

    def test_stderr_merged(self):
        result = run_automation("1", command=_python("import sys; sys.stderr.write('boom\\n')"),
                                timeout_ms=30_000)
        assert "boom" in result.output

    @pytest.mark.skipif(sys.platform == "win32", reason="kill() yields exit code 1 on Windows")
    def test_timeout_kills_child(self):
        result = run_automation(
            "1",
            command=_python("import time; print('started', flush=True); time.sleep(30)"),
            timeout_ms=3000,
        )
        assert result.timed_out is True
        assert result.exit_code == -1
        assert "started" in result.output

    def test_missing_binary(self, tmp_path):
        result = run_automation("1", command=[str(tmp_path / "no-such-binary")], timeout_ms=1000)
        assert result.exit_code == -3
        assert result.output.startswith("Failed to start automation:")

    def test_playwright_not_installed(self, monkeypatch):
        monkeypatch.setattr(importlib.util, "find_spec", lambda name: None)
        result = run_automation("1")
        assert result.exit_code == -4
        assert "not installed" in result.output

    def test_output_capped(self):
        result = run_automation("1", command=_python("import sys; sys.stdout.write('x' * 300000)"),
                                timeout_ms=30_000)
        assert result.exit_code == 0
        assert len(result.output) == BrowserDefaults.PROCESS_OUTPUT_LIMIT + len(RunDefaults.TRUNCATION_MARKER)
        assert result.output.endswith(RunDefaults.TRUNCATION_MARKER)
