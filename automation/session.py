# ============================================================================
# BROWSER SESSION
# ============================================================================
# STATUS: Automation - Browser acquisition for the create-bridge flow
# PURPOSE: Pick Workspaces / CDP / local launch / manual sign-in and open a page
# DEPENDENCIES: playwright (sync API), config.BrowserConfig, infrastructure.auth
# ============================================================================
"""
Browser Session.

Session modes, in priority order:

    WORKSPACES  PLAYWRIGHT_SERVICE_URL set: remote browser on Playwright
                Workspaces, bearer token from PLAYWRIGHT_SERVICE_ACCESS_TOKEN
                or DefaultAzureCredential, stored session loaded into a new
                context
    CDP         A CDP URL or debugging port set: attach to a running
                browser and reuse its first context
    MANUAL      AUTH_MODE=manual: local launch without a stored session,
                the operator signs in
    LOCAL       Auth file present: local launch with the stored session
    SKIP        None of the above; nothing can authenticate

Exports:
    SessionMode: Enum of the modes above
    select_mode: Choose a mode from config and auth-file availability
    BrowserSession: Owns the Playwright driver, browser and context
"""

import os
import uuid
from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import urlencode

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from config import BrowserConfig
from config.defaults import BrowserDefaults
from infrastructure.auth import get_access_token


class SessionMode(str, Enum):
    WORKSPACES = "workspaces"
    CDP = "cdp"
    MANUAL = "manual"
    LOCAL = "local"
    SKIP = "skip"


def select_mode(config: BrowserConfig, auth_file: Optional[Path]) -> SessionMode:
    if config.playwright_service_url:
        return SessionMode.WORKSPACES
    if config.cdp_requested:
        return SessionMode.CDP
    if config.is_manual_auth:
        return SessionMode.MANUAL
    if auth_file is not None and auth_file.is_file():
        return SessionMode.LOCAL
    return SessionMode.SKIP


def is_headless(config: BrowserConfig) -> bool:
    """HEADED defaults to on; PWHEADLESS=1 or HEADED=0 forces headless."""
    if os.environ.get("PWHEADLESS", "").strip() == "1":
        return True
    return config.headed is False


def workspace_endpoint(service_url: str, run_id: Optional[str] = None) -> str:
    query = urlencode({
        "os": BrowserDefaults.WORKSPACE_OS,
        "runId": run_id or str(uuid.uuid4()),
        "api-version": BrowserDefaults.WORKSPACE_API_VERSION,
    })
    separator = "&" if "?" in service_url else "?"
    return f"{service_url}{separator}{query}"


class BrowserSession:
    """
    Owns one browser context for the length of a run.

    Use as a context manager; close() stops the driver. For CDP sessions
    only the driver connection is dropped and the attached browser keeps
    running.
    """

    WORKSPACE_CONNECT_TIMEOUT_MS = 3 * 60 * 1000

    def __init__(self, config: BrowserConfig, mode: SessionMode,
                 auth_file: Optional[Path] = None,
                 log: Optional[Callable[[str], object]] = None):
        self.config = config
        self.mode = mode
        self.auth_file = auth_file
        self.log = log or (lambda message: None)

        self._playwright: Optional[Playwright] = None
        self._driver = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def _storage_state(self) -> Optional[str]:
        if self.auth_file is not None and self.auth_file.is_file():
            return str(self.auth_file)
        return None

    def open(self) -> Page:
        if self.mode is SessionMode.SKIP:
            raise ValueError("No browser session can be opened in skip mode")

        self._driver = sync_playwright()
        self._playwright = self._driver.start()
        chromium = self._playwright.chromium

        if self.mode is SessionMode.WORKSPACES:
            token = self.config.playwright_service_token or get_access_token(BrowserDefaults.WORKSPACE_TOKEN_SCOPE)
            endpoint = workspace_endpoint(self.config.playwright_service_url)
            self.log("Connecting to Playwright Workspaces")
            self.browser = chromium.connect(
                endpoint,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self.WORKSPACE_CONNECT_TIMEOUT_MS,
                expose_network="<loopback>",
            )
            self.context = self.browser.new_context(storage_state=self._storage_state())

        elif self.mode is SessionMode.CDP:
            self.log(f"Attaching over CDP: {self.config.cdp_url}")
            self.browser = chromium.connect_over_cdp(self.config.cdp_url)
            contexts = self.browser.contexts
            self.context = contexts[0] if contexts else self.browser.new_context()

        else:
            headless = is_headless(self.config)
            self.log(f"Launching {self.config.channel} headless={headless} mode={self.mode.value}")
            self.browser = chromium.launch(channel=self.config.channel, headless=headless)
            storage_state = None if self.mode is SessionMode.MANUAL else self._storage_state()
            self.context = self.browser.new_context(storage_state=storage_state)

        self.page = self.context.new_page()
        return self.page

    def ensure_open_page(self) -> Page:
        """Return a live page, opening a fresh one in the same context when the old one closed."""
        if self.page is None or self.page.is_closed():
            self.log("Page was closed; opening a new page in the same context")
            self.page = self.context.new_page()
        return self.page

    def close(self) -> None:
        try:
            if self.mode is not SessionMode.CDP and self.context is not None:
                self.context.close()
            if self.browser is not None:
                self.browser.close()
        except Exception as e:
            self.log(f"Browser close failed: {e}")
        finally:
            if self._driver is not None:
                self._driver.stop()
                self._driver = None
            self._playwright = None


__all__ = ['BrowserSession', 'SessionMode', 'select_mode', 'is_headless', 'workspace_endpoint']
