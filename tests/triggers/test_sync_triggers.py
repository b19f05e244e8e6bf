"""
Synchronous create-bridge trigger tests (all three modes).
"""

import pytest

from config.defaults import BrowserDefaults
from core.models import AuthStateSource, ProcessResult
from services import auth_state
from triggers.create_bridge import CreateBridgeSyncTrigger, SyncMode
from tests.factories.fakes import FakeRunner, write_auth_state


SERVICE_URL = "wss://eastus.api.playwright.microsoft.com/accounts/abc/browsers"


def _trigger(mode, function_root, runner=None):
    return CreateBridgeSyncTrigger(mode, runner=runner or FakeRunner(), function_root=function_root)


class TestMsAuthMode:

    def test_missing_session_file(self, function_root, make_request, json_body):
        runner = FakeRunner()
        response = _trigger(SyncMode.MSAUTH, function_root, runner).handle_request(
            make_request(params={"incidentId": "155071351"})
        )

        assert response.status_code == 412
        body = json_body(response)
        assert body["error"] == "Precondition failed"
        assert body["message"] == "MSAuth.json not found in the function root."
        assert body["expectedPath"] == str(function_root / "MSAuth.json")
        assert "save_auth_state" in body["hint"]
        assert runner.calls == []

    def test_runs_with_bundled_session(self, function_root, make_request, json_body):
        write_auth_state(function_root / "MSAuth.json")
        runner = FakeRunner()

        response = _trigger(SyncMode.MSAUTH, function_root, runner).handle_request(
            make_request(params={"incidentId": "155071351"})
        )

        assert response.status_code == 200
        body = json_body(response)
        assert body["ok"] is True
        assert body["exitCode"] == 0
        assert body["timedOut"] is False
        assert body["output"] == "step 7/7 Success\n"
        assert runner.calls == [{
            'incident_id': "155071351",
            'browser_name': "edge",
            'timeout_ms': BrowserDefaults.SYNC_TIMEOUT_MS,
            'msauth_path': str(function_root / "MSAuth.json"),
            'extra_env': {"HEADED": "1"},
        }]

    def test_headed_off_and_timeout_from_settings(self, function_root, make_request, monkeypatch):
        monkeypatch.setenv("HEADED", "0")
        monkeypatch.setenv("FUNCTION_TIMEOUT_MS", "90000")
        monkeypatch.setenv("BROWSER", "chrome")
        write_auth_state(function_root / "MSAuth.json")
        runner = FakeRunner()

        _trigger(SyncMode.MSAUTH, function_root, runner).handle_request(make_request(params={"incidentId": "1"}))

        call = runner.calls[0]
        assert call['extra_env'] == {"HEADED": "0"}
        assert call['timeout_ms'] == 90000
        assert call['browser_name'] == "chrome"

    def test_automation_failure_is_500(self, function_root, make_request, json_body):
        write_auth_state(function_root / "MSAuth.json")
        runner = FakeRunner(ProcessResult(exit_code=1, output="Create bridge not found"))

        response = _trigger(SyncMode.MSAUTH, function_root, runner).handle_request(
            make_request(params={"incidentId": "1"})
        )

        assert response.status_code == 500
        body = json_body(response)
        assert body["ok"] is False
        assert body["exitCode"] == 1
        assert body["output"] == "Create bridge not found"

    def test_missing_incident(self, function_root, make_request, json_body):
        response = _trigger(SyncMode.MSAUTH, function_root).handle_request(make_request())
        assert response.status_code == 400
        assert json_body(response)["example"] == "/api/create-bridge-msauth?incidentId=155071351"


class TestManualMode:

    def test_manual_sign_in_settings(self, function_root, make_request):
        runner = FakeRunner()
        response = _trigger(SyncMode.MANUAL, function_root, runner).handle_request(
            make_request(method="POST", body={"incidentId": "155071351"})
        )
        assert response.status_code == 200
        call = runner.calls[0]
        assert call['browser_name'] == "chrome"
        assert call['extra_env'] == {"HEADED": "1", "AUTH_MODE": "manual"}
        assert 'msauth_path' not in call


class TestWorkspaceMode:

    def test_service_url_required(self, function_root, make_request, json_body):
        response = _trigger(SyncMode.WORKSPACE, function_root).handle_request(
            make_request(params={"incidentId": "1"})
        )
        assert response.status_code == 412
        assert json_body(response)["message"].startswith("PLAYWRIGHT_SERVICE_URL is not set")

    def test_uses_resolved_session(self, function_root, make_request, monkeypatch):
        monkeypatch.setenv("PLAYWRIGHT_SERVICE_URL", SERVICE_URL)
        write_auth_state(function_root / "MSAuth.json")
        runner = FakeRunner()

        response = _trigger(SyncMode.WORKSPACE, function_root, runner).handle_request(
            make_request(params={"incidentId": "1"})
        )

        assert response.status_code == 200
        call = runner.calls[0]
        assert call['msauth_path'] == str(function_root.resolve() / "MSAuth.json")
        assert call['timeout_ms'] == BrowserDefaults.WORKSPACE_TIMEOUT_MS

    def test_no_session_anywhere(self, function_root, make_request, monkeypatch):
        monkeypatch.setenv("PLAYWRIGHT_SERVICE_URL", SERVICE_URL)
        runner = FakeRunner()
        _trigger(SyncMode.WORKSPACE, function_root, runner).handle_request(make_request(params={"incidentId": "1"}))
        assert runner.calls[0]['msauth_path'] is None

    def test_retrieval_failure_is_500(self, function_root, make_request, json_body, monkeypatch):
        monkeypatch.setenv("PLAYWRIGHT_SERVICE_URL", SERVICE_URL)
        monkeypatch.setenv("MSAUTH_BLOB_URL", "https://acct.blob.core.windows.net/c/MSAuth.json?sig=x")

        def fail(config, target, log):
            raise RuntimeError("HTTP 403")

        monkeypatch.setitem(auth_state._FETCHERS, AuthStateSource.BLOB_URL, fail)
        runner = FakeRunner()

        response = _trigger(SyncMode.WORKSPACE, function_root, runner).handle_request(
            make_request(params={"incidentId": "1"})
        )

        assert response.status_code == 500
        assert json_body(response)["message"] == ("Failed to fetch MSAuth.json: MSAuth.json retrieval failed. "
                                                  "BlobUrl: HTTP 403")
        assert runner.calls == []
