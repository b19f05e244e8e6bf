"""
Preflight and landing page trigger tests.
"""

from triggers.landing import LandingTrigger
from triggers.msauth_preflight import MsAuthPreflightTrigger
from tests.factories.fakes import write_auth_state


class TestMsAuthPreflightTrigger:

    def test_fetch_disabled_missing_file(self, function_root, make_request, json_body):
        response = MsAuthPreflightTrigger(function_root).handle_request(make_request(params={"fetch": "0"}))
        assert response.status_code == 412
        body = json_body(response)
        assert body["doFetch"] is False
        assert body["request_id"] == response.headers["X-Request-ID"]

    def test_fetch_disabled_valid_file(self, function_root, make_request, json_body):
        write_auth_state(function_root / "MSAuth.json")
        response = MsAuthPreflightTrigger(function_root).handle_request(make_request(params={"fetch": "false"}))
        assert response.status_code == 200
        assert json_body(response)["result"]["validated"] is True

    def test_fetch_default_not_configured(self, function_root, make_request, json_body):
        response = MsAuthPreflightTrigger(function_root).handle_request(make_request())
        assert response.status_code == 412
        assert json_body(response)["error"] == "MSAuth retrieval is not configured."


class TestLandingTrigger:

    def test_renders_form_for_caller_host(self, make_request):
        response = LandingTrigger().handle_request(make_request(headers={"host": "bridge-func.azurewebsites.net"}))

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert response.headers["X-Request-ID"]
        html = response.get_body().decode("utf-8")
        assert 'action="https://bridge-func.azurewebsites.net/api/create-bridge-msauth"' in html
        assert "https://bridge-func.azurewebsites.net/api/msauth-preflight" in html

    def test_configured_base_endpoint_and_incidents(self, make_request, monkeypatch):
        monkeypatch.setenv("CREATE_BRIDGE_BASE_URL", "https://bridge.contoso.com/")
        monkeypatch.setenv("CREATE_BRIDGE_ENDPOINT", "create-bridge-msauth-async")
        monkeypatch.setenv("LANDING_INCIDENTS", "155071351,154880884")

        html = LandingTrigger().handle_request(make_request()).get_body().decode("utf-8")

        assert 'action="https://bridge.contoso.com/api/create-bridge-msauth-async"' in html
        assert 'href="https://bridge.contoso.com/api/create-bridge-msauth-async?incidentId=155071351"' in html
        assert "Incident #154880884" in html

    def test_local_default_base(self, make_request):
        html = LandingTrigger().handle_request(make_request()).get_body().decode("utf-8")
        assert 'action="http://localhost:7075/api/create-bridge-msauth"' in html

    def test_auth_panel_never_shows_sas(self, make_request, monkeypatch):
        monkeypatch.setenv("MSAUTH_BLOB_URL", "https://acct.blob.core.windows.net/playwright/MSAuth.json?sig=SECRET")
        monkeypatch.setenv("WEBSITE_RUN_FROM_PACKAGE", "1")

        html = LandingTrigger().handle_request(make_request()).get_body().decode("utf-8")

        assert "SECRET" not in html
        assert "https://acct.blob.core.windows.net/playwright/MSAuth.json" in html
        assert "(temp folder)" in html

    def test_incident_links_escaped(self, make_request, monkeypatch):
        monkeypatch.setenv("LANDING_INCIDENTS", "<script>")
        html = LandingTrigger().handle_request(make_request()).get_body().decode("utf-8")
        assert "<script>" not in html
        assert "Incident #&lt;script&gt;" in html
