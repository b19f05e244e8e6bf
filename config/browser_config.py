"""
Browser Automation Configuration.

Controls which browser the create-bridge flow drives and how it attaches:
Playwright Workspaces (remote), CDP attach to an already-running browser,
or a local launch with the stored session.

Exports:
    BrowserConfig: Pydantic browser configuration model
    resolve_channel: Map a BROWSER value to a Playwright launch channel
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import BrowserDefaults
from .runtime_config import parse_flag


_CDP_PORT_VARS = (
    "CDP_PORT",
    "EDGE_CDP_PORT",
    "EDGE_REMOTE_DEBUGGING_PORT",
    "CHROME_CDP_PORT",
    "CHROME_REMOTE_DEBUGGING_PORT",
)

_CDP_URL_VARS = ("CDP_URL", "EDGE_CDP_URL", "CHROME_CDP_URL")


def resolve_channel(browser_name: Optional[str]) -> str:
    """
    Map a BROWSER setting to a Playwright channel.

    edge/msedge -> msedge, chrome -> chrome, anything else passes through;
    empty means msedge.
    """
    name = (browser_name or "").strip().lower()
    if not name or name in ("edge", "msedge"):
        return "msedge"
    return name


def _first_env(names) -> Optional[str]:
    for name in names:
        value = os.environ.get(name)
        if value:
            return value
    return None


class BrowserConfig(BaseModel):
    """Browser selection, attach mode and timeouts."""

    browser: Optional[str] = Field(default=None, description="BROWSER - edge, chrome or a Playwright channel")
    headed: Optional[bool] = Field(default=None, description="HEADED - None lets the caller pick")

    sync_timeout_ms: Optional[int] = Field(default=None, description="FUNCTION_TIMEOUT_MS")
    async_timeout_ms: Optional[int] = Field(default=None, description="FUNCTION_TIMEOUT_MS_ASYNC")

    cdp_port: Optional[str] = Field(default=None, description="First of CDP_PORT / EDGE_* / CHROME_* debugging ports")
    cdp_url_override: Optional[str] = Field(default=None, description="First of CDP_URL / EDGE_CDP_URL / CHROME_CDP_URL")

    portal_base_url: str = Field(default=BrowserDefaults.PORTAL_BASE_URL)
    report_dir: str = Field(description="Directory receiving index.html, screenshots and step logs")

    auth_mode: str = Field(default="msauth", description="msauth (stored session) or manual (operator signs in)")

    playwright_service_url: Optional[str] = Field(default=None)
    playwright_service_token: Optional[str] = Field(default=None, repr=False)

    incident_number: Optional[str] = Field(default=None, description="INCIDENT_NUMBER for the automation process")
    msauth_path: Optional[str] = Field(default=None, description="MSAUTH_PATH handed to the automation process")

    @property
    def channel(self) -> str:
        return resolve_channel(self.browser)

    @property
    def cdp_requested(self) -> bool:
        return bool(self.cdp_port or self.cdp_url_override)

    @property
    def cdp_url(self) -> str:
        if self.cdp_url_override:
            return self.cdp_url_override
        if self.cdp_port:
            return f"http://127.0.0.1:{self.cdp_port}"
        return BrowserDefaults.CDP_URL

    @property
    def is_manual_auth(self) -> bool:
        return self.auth_mode.strip().lower() == "manual"

    @property
    def overview_url(self) -> str:
        return self.portal_base_url.rstrip("/") + BrowserDefaults.OVERVIEW_PATH

    @property
    def advanced_search_url(self) -> str:
        return self.portal_base_url.rstrip("/") + BrowserDefaults.ADVANCED_SEARCH_PATH

    @staticmethod
    def default_report_dir() -> str:
        home = os.environ.get("HOME") or str(Path.home())
        return os.path.join(home, "data", BrowserDefaults.REPORT_DIR_NAME)

    @classmethod
    def from_environment(cls) -> "BrowserConfig":
        """Load from environment variables."""
        def parse_int(value: Optional[str]) -> Optional[int]:
            if value is None or not value.strip():
                return None
            try:
                parsed = int(float(value))
            except ValueError:
                return None
            return parsed if parsed > 0 else None

        return cls(
            browser=os.environ.get("BROWSER") or None,
            headed=parse_flag(os.environ.get("HEADED")),
            sync_timeout_ms=parse_int(os.environ.get("FUNCTION_TIMEOUT_MS")),
            async_timeout_ms=parse_int(os.environ.get("FUNCTION_TIMEOUT_MS_ASYNC")),
            cdp_port=_first_env(_CDP_PORT_VARS),
            cdp_url_override=_first_env(_CDP_URL_VARS),
            portal_base_url=os.environ.get("PORTAL_BASE_URL") or BrowserDefaults.PORTAL_BASE_URL,
            report_dir=os.environ.get("REPORT_DIR") or cls.default_report_dir(),
            auth_mode=os.environ.get("AUTH_MODE") or "msauth",
            playwright_service_url=os.environ.get("PLAYWRIGHT_SERVICE_URL") or None,
            playwright_service_token=os.environ.get("PLAYWRIGHT_SERVICE_ACCESS_TOKEN") or None,
            incident_number=os.environ.get("INCIDENT_NUMBER") or None,
            msauth_path=os.environ.get("MSAUTH_PATH") or None,
        )

    def debug_dict(self) -> dict:
        return {
            "browser": self.browser,
            "channel": self.channel,
            "headed": self.headed,
            "sync_timeout_ms": self.sync_timeout_ms,
            "async_timeout_ms": self.async_timeout_ms,
            "cdp_requested": self.cdp_requested,
            "portal_base_url": self.portal_base_url,
            "report_dir": self.report_dir,
            "auth_mode": self.auth_mode,
            "has_playwright_service_url": bool(self.playwright_service_url),
            "playwright_service_token": "***MASKED***" if self.playwright_service_token else None,
        }
