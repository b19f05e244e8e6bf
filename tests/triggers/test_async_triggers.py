"""
Async create-bridge and run-status trigger tests.
"""

import json

import pytest

from core.models import AuthStateSource, MsAuthInfo, RunState, RunStatus
from triggers.create_bridge_async import CreateBridgeAsyncTrigger, parse_timeout_ms
from triggers.run_status import RunStatusTrigger
from tests.factories.fakes import FakeBlobRepository, FakeRunQueue, RecordingStatusRepository
from tests.factories.model_factories import make_run_status


HOST = {"host": "bridge-func.azurewebsites.net"}


class TestParseTimeout:

    @pytest.mark.parametrize("raw,expected", [(None, None), ("60000", 60000), ("1.5e4", 15000)])
    def test_valid(self, raw, expected):
        assert parse_timeout_ms(raw) == expected

    @pytest.mark.parametrize("raw", ["soon", "0", "-10", "inf", "1e400", "nan"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_timeout_ms(raw)


class TestCreateBridgeAsync:

    def test_queues_run(self, make_request, json_body):
        repo = RecordingStatusRepository()
        queue = FakeRunQueue()
        trigger = CreateBridgeAsyncTrigger(status_repo=repo)

        response = trigger.handle_request(
            make_request(params={"incidentId": "155071351"}, headers=HOST), run_queue=queue
        )

        assert response.status_code == 202
        body = json_body(response)
        run_id = body["runId"]
        assert body["ok"] is True
        assert body["incidentId"] == "155071351"
        assert body["statusPath"] == f"/api/run-status?runId={run_id}"
        assert body["statusUrl"] == f"https://bridge-func.azurewebsites.net/api/run-status?runId={run_id}"
        assert response.headers["X-Request-ID"] == body["request_id"]

        assert repo.states == [RunState.QUEUED]
        stored = repo.read(run_id)
        assert stored.incident_id == "155071351"
        assert stored.browser_name == "edge"
        assert stored.enqueued_at is not None

        message = json.loads(queue.get())
        assert message["runId"] == run_id
        assert message["incidentId"] == "155071351"
        assert message["browserName"] == "edge"
        assert "timeoutMs" not in message

    def test_forwarded_headers_and_options(self, make_request, json_body):
        queue = FakeRunQueue()
        trigger = CreateBridgeAsyncTrigger(status_repo=RecordingStatusRepository())

        response = trigger.handle_request(
            make_request(
                params={"incident": "42", "browser": "chrome", "timeoutMs": "60000"},
                headers={"x-forwarded-host": "bridge.contoso.com", "x-forwarded-proto": "http", **HOST},
            ),
            run_queue=queue,
        )

        body = json_body(response)
        assert body["statusUrl"].startswith("http://bridge.contoso.com/api/run-status?runId=")
        message = json.loads(queue.get())
        assert message["browserName"] == "chrome"
        assert message["timeoutMs"] == 60000

    def test_incident_from_json_body(self, make_request, json_body):
        queue = FakeRunQueue()
        trigger = CreateBridgeAsyncTrigger(status_repo=RecordingStatusRepository())
        response = trigger.handle_request(
            make_request(method="POST", body={"incidentId": 155071351}), run_queue=queue
        )
        assert response.status_code == 202
        assert json_body(response)["incidentId"] == "155071351"

    def test_no_host_means_no_status_url(self, make_request, json_body):
        trigger = CreateBridgeAsyncTrigger(status_repo=RecordingStatusRepository())
        response = trigger.handle_request(make_request(params={"id": "7"}), run_queue=FakeRunQueue())
        body = json_body(response)
        assert body["statusUrl"] is None
        assert body["statusPath"].startswith("/api/run-status?runId=")

    def test_missing_incident(self, make_request, json_body):
        queue = FakeRunQueue()
        repo = RecordingStatusRepository()
        response = CreateBridgeAsyncTrigger(status_repo=repo).handle_request(make_request(), run_queue=queue)
        assert response.status_code == 400
        assert json_body(response)["error"] == "Missing required query parameter: incidentId"
        assert queue.get() is None
        assert repo.written == []

    @pytest.mark.parametrize("raw", ["soon", "inf"])
    def test_bad_timeout(self, make_request, json_body, raw):
        response = CreateBridgeAsyncTrigger(status_repo=RecordingStatusRepository()).handle_request(
            make_request(params={"incidentId": "1", "timeoutMs": raw}), run_queue=FakeRunQueue()
        )
        assert response.status_code == 400
        assert json_body(response)["error"] == "Bad request"

    def test_status_write_failure(self, make_request, json_body):
        queue = FakeRunQueue()
        repo = RecordingStatusRepository(FakeBlobRepository(fail_writes=True))
        response = CreateBridgeAsyncTrigger(status_repo=repo).handle_request(
            make_request(params={"incidentId": "1"}), run_queue=queue
        )
        assert response.status_code == 500
        assert json_body(response)["error"].startswith("Failed to persist run status:")
        assert queue.get() is None

    def test_method_not_allowed(self, make_request):
        response = CreateBridgeAsyncTrigger(status_repo=RecordingStatusRepository()).handle_request(
            make_request(method="PUT", params={"incidentId": "1"}), run_queue=FakeRunQueue()
        )
        assert response.status_code == 405


class TestRunStatus:

    @pytest.fixture
    def stored_run(self):
        repo = RecordingStatusRepository()
        status = RunStatus(**make_run_status(state=RunState.FAILED))
        status.error = "MSAuth.json invalid: file too small (2 bytes)"
        status.logs = ["+0ms msg_received"]
        status.ms_auth = MsAuthInfo(source=AuthStateSource.LOCAL, bytes=2)
        status.ms_auth_config = {"any": False}
        repo.write(status)
        return repo, status

    def test_returns_document_without_auth_or_logs(self, stored_run, make_request, json_body):
        repo, status = stored_run
        response = RunStatusTrigger(status_repo=repo).handle_request(make_request(params={"runId": status.run_id}))

        assert response.status_code == 200
        body = json_body(response)
        assert body["runId"] == status.run_id
        assert body["state"] == "failed"
        assert body["error"] == status.error
        for key in ("msAuth", "msAuthConfig", "logs"):
            assert key not in body

    def test_include_flags(self, stored_run, make_request, json_body):
        repo, status = stored_run
        response = RunStatusTrigger(status_repo=repo).handle_request(make_request(params={
            "runId": status.run_id, "includeMsAuth": "1", "includeLogs": "TRUE",
        }))
        body = json_body(response)
        assert body["msAuth"]["source"] == "local"
        assert body["msAuthConfig"] == {"any": False}
        assert body["logs"] == ["+0ms msg_received"]

    def test_missing_run_id(self, make_request, json_body):
        response = RunStatusTrigger(status_repo=RecordingStatusRepository()).handle_request(make_request())
        assert response.status_code == 400
        assert json_body(response)["error"] == "Missing required query parameter: runId"

    def test_malformed_run_id(self, make_request):
        response = RunStatusTrigger(status_repo=RecordingStatusRepository()).handle_request(
            make_request(params={"runId": "../../secrets"})
        )
        assert response.status_code == 400

    def test_unknown_run(self, make_request, json_body):
        response = RunStatusTrigger(status_repo=RecordingStatusRepository()).handle_request(
            make_request(params={"runId": "unknown-run"})
        )
        assert response.status_code == 404
        assert json_body(response) == {
            "ok": False, "error": "Run not found", "runId": "unknown-run",
            "request_id": response.headers["X-Request-ID"],
        }

    def test_storage_failure(self, make_request, json_body):
        repo = RecordingStatusRepository(FakeBlobRepository(fail_reads=True))
        response = RunStatusTrigger(status_repo=repo).handle_request(make_request(params={"runId": "r1"}))
        assert response.status_code == 500
        assert json_body(response)["error"].startswith("Failed to read run status:")

    def test_post_not_allowed(self, make_request):
        response = RunStatusTrigger(status_repo=RecordingStatusRepository()).handle_request(
            make_request(method="POST", params={"runId": "r1"})
        )
        assert response.status_code == 405
