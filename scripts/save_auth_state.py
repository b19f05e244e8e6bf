"""
Capture MSAuth.json (Playwright storage state) after an interactive sign-in.

Attaches to a running Edge over CDP when EDGE_CDP_PORT (or
EDGE_REMOTE_DEBUGGING_PORT) is set, otherwise launches a headed Edge.
Opens the portal's advanced search page and waits up to 10 minutes for the
incident search box, then saves the session. MS_USERNAME / MS_PASSWORD, when
set, are typed into the Entra login form on a best-effort basis; MFA and
conditional access prompts still need a person.

Usage:
    python -m scripts.save_auth_state
    EDGE_CDP_PORT=9222 python -m scripts.save_auth_state

Upload the result to the location the Function App reads from
(MSAUTH_BLOB_URL, the blob container, or the Key Vault secret).
"""
import logging
import os
import sys
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from automation.incident_page import SEARCH_INPUT
from config import BrowserConfig
from config.defaults import AuthStateDefaults, BrowserDefaults

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FUNCTION_ROOT = Path(__file__).resolve().parent.parent

EMAIL_INPUT = 'input[name="loginfmt"], input[type="email"]'
PASSWORD_INPUT = 'input[name="passwd"], input[type="password"]'
NEXT_BUTTON = '#idSIButton9'


def _click_next_or_enter(page: Page, field) -> None:
    button = page.locator(NEXT_BUTTON).first
    try:
        if button.is_visible():
            button.click(timeout=5_000)
        else:
            field.press("Enter")
    except PlaywrightError:
        pass


def autofill_login(page: Page, username: str = None, password: str = None) -> None:
    """Type credentials into whichever Entra login step is showing."""
    if username:
        email = page.locator(EMAIL_INPUT).first
        try:
            email.wait_for(state="visible", timeout=5_000)
            email.fill(username, timeout=5_000)
            _click_next_or_enter(page, email)
        except PlaywrightError:
            logger.info("Email field not shown; continuing")

    if password:
        secret = page.locator(PASSWORD_INPUT).first
        try:
            secret.wait_for(state="visible", timeout=10_000)
            secret.fill(password, timeout=5_000)
            _click_next_or_enter(page, secret)
        except PlaywrightError:
            logger.info("Password field not shown; continuing")

    # "Stay signed in?" reuses the same button id
    stay = page.locator(NEXT_BUTTON).first
    try:
        if stay.is_visible():
            stay.click(timeout=5_000)
    except PlaywrightError:
        pass


def save_auth_state(auth_file: Path) -> int:
    config = BrowserConfig.from_environment()
    cdp_port = os.environ.get("EDGE_CDP_PORT") or os.environ.get("EDGE_REMOTE_DEBUGGING_PORT")

    with sync_playwright() as playwright:
        if cdp_port:
            logger.info(f"Connecting to existing Edge on port {cdp_port}...")
            try:
                browser = playwright.chromium.connect_over_cdp(f"http://localhost:{cdp_port}")
            except PlaywrightError as e:
                logger.error(f"Failed to connect to Edge via CDP: {e}")
                logger.info("Start Edge with: msedge.exe --remote-debugging-port=9222")
                logger.info("Then set EDGE_CDP_PORT=9222 and run this script again.")
                return 1
            context = browser.contexts[0] if browser.contexts else browser.new_context()
        else:
            logger.info("Launching new Edge browser for authentication...")
            browser = playwright.chromium.launch(channel="msedge", headless=False)
            context = browser.new_context()

        page = context.pages[0] if context.pages else context.new_page()
        try:
            page.goto(config.advanced_search_url, wait_until="domcontentloaded",
                      timeout=BrowserDefaults.NAVIGATION_TIMEOUT_MS)

            logger.info("Waiting for the incident search box...")
            logger.info("(Complete Microsoft sign-in if prompted)")
            autofill_login(page, os.environ.get("MS_USERNAME"), os.environ.get("MS_PASSWORD"))

            page.wait_for_selector(SEARCH_INPUT, timeout=BrowserDefaults.MANUAL_LOGIN_TIMEOUT_MS)
            context.storage_state(path=str(auth_file))
            logger.info(f"✓ Saved authentication to {auth_file}")
            return 0
        except PlaywrightError as e:
            logger.error(f"Failed to save auth: {e}")
            return 1
        finally:
            # An attached browser belongs to the operator
            if not cdp_port:
                browser.close()


def main() -> int:
    auth_file = Path(os.environ.get("MSAUTH_PATH") or FUNCTION_ROOT / AuthStateDefaults.FILE_NAME)
    return save_auth_state(auth_file)


if __name__ == '__main__':
    sys.exit(main())
