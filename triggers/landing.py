"""
Landing Page Trigger.

GET /api/landing

Small HTML front door: an incident-id form that calls the configured
create-bridge endpoint, optional quick links for LANDING_INCIDENTS, and an
auth preflight panel that shows which MSAuth.json sources are configured.
Nothing secret is rendered and nothing is downloaded by this page.

Exports:
    landing_trigger: Singleton instance used by function_app.py
"""

from html import escape
from typing import List, Tuple
from urllib.parse import quote

import azure.functions as func

from config import get_config, safe_url
from config.defaults import LandingDefaults
from .http_base import BaseHttpTrigger, TriggerResponse


LANDING_CSS = """
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body {
        font-family: "Segoe UI", Arial, sans-serif;
        background: #0b1020;
        color: #eaf0ff;
        min-height: 100vh;
        padding: 32px;
    }
    .container { max-width: 960px; margin: 0 auto; display: grid; gap: 20px; }
    h1 { font-size: 24px; font-weight: 650; }
    .subtitle { color: rgba(234,240,255,0.7); font-size: 14px; }
    .panel {
        background: rgba(255,255,255,0.05);
        border: 1px solid rgba(255,255,255,0.1);
        border-radius: 8px;
        padding: 18px 20px;
    }
    form { display: flex; gap: 10px; flex-wrap: wrap; }
    input[type=text] {
        flex: 1; min-width: 220px; padding: 10px 12px; border-radius: 6px;
        border: 1px solid rgba(255,255,255,0.2); background: #121a33; color: #eaf0ff;
    }
    .btn {
        padding: 10px 16px; border-radius: 6px; border: none; background: #3b6cff;
        color: white; font-weight: 600; cursor: pointer; text-decoration: none;
    }
    .links { display: flex; gap: 8px; flex-wrap: wrap; margin-top: 10px; }
    .links a { color: #9db4ff; font-size: 13px; }
    .kv { display: flex; justify-content: space-between; gap: 12px; font-size: 12px;
          color: rgba(234,240,255,0.75); padding: 3px 0; }
    .kv strong { color: rgba(234,240,255,0.92); font-weight: 600; }
    .muted { font-size: 12px; color: rgba(234,240,255,0.6); margin-top: 8px; }
"""


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


class LandingTrigger(BaseHttpTrigger):

    def __init__(self):
        super().__init__("landing")

    def get_allowed_methods(self) -> List[str]:
        return ["GET"]

    def process_request(self, req: func.HttpRequest, **bindings) -> TriggerResponse:
        config = get_config()
        base_url = (config.landing_base_url or self.get_base_url(req) or LandingDefaults.LOCAL_BASE_URL).rstrip("/")
        endpoint = config.landing_endpoint or LandingDefaults.ENDPOINT
        endpoint_url = f"{base_url}/api/{quote(endpoint)}"
        preflight_url = f"{base_url}/api/msauth-preflight"

        html = self.render(base_url, endpoint_url, preflight_url, config.landing_incidents)
        return TriggerResponse(html, mimetype="text/html")

    def auth_preflight_items(self) -> List[Tuple[str, str]]:
        auth = get_config().auth
        runtime = get_config().runtime

        blob_url = safe_url(auth.blob_url)
        if auth.write_path:
            write_path = auth.write_path
        elif runtime.is_run_from_package:
            write_path = "(temp folder)"
        else:
            write_path = "(function wwwroot)"

        return [
            ("MSAUTH_BLOB_URL set", _yes_no(bool(auth.blob_url))),
            ("MSAUTH_BLOB_URL", blob_url or "(not set)"),
            ("Key Vault configured", _yes_no(auth.key_vault_configured)),
            ("Blob settings configured", _yes_no(auth.blob_configured)),
            ("Run-from-package", _yes_no(runtime.is_run_from_package)),
            ("MSAuth write path", write_path),
        ]

    def render(self, base_url: str, endpoint_url: str, preflight_url: str, incidents: List[str]) -> str:
        quick_links = "".join(
            f'<a href="{escape(endpoint_url)}?incidentId={escape(quote(str(incident)))}">'
            f'Incident #{escape(str(incident))}</a>'
            for incident in incidents
        )
        links_html = f'<div class="links">{quick_links}</div>' if quick_links else ""

        items_html = "".join(
            f'<div class="kv"><span>{escape(key)}</span><strong>{escape(value)}</strong></div>'
            for key, value in self.auth_preflight_items()
        )

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Create Bridge</title>
    <style>{LANDING_CSS}</style>
</head>
<body>
    <div class="container">
        <div>
            <h1>Create bridge</h1>
            <div class="subtitle">Automates the portal "Create bridge" action for an incident.</div>
        </div>
        <div class="panel">
            <form method="get" action="{escape(endpoint_url)}">
                <input type="text" name="incidentId" placeholder="Incident ID" required>
                <button class="btn" type="submit">Create bridge</button>
            </form>
            {links_html}
        </div>
        <div class="panel">
            <div style="font-weight:650; margin-bottom:8px;">Auth preflight</div>
            {items_html}
            <div class="muted">No secrets are downloaded from this page.
                <a href="{escape(preflight_url)}" style="color:#9db4ff;">Run preflight</a></div>
        </div>
        <div class="muted">Base URL: {escape(base_url)}</div>
    </div>
</body>
</html>"""


landing_trigger = LandingTrigger()
