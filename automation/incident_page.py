# ============================================================================
# INCIDENT PAGE
# ============================================================================
# STATUS: Automation - Page object for the incident portal
# PURPOSE: Search an incident, open "Create bridge", pick Engineering, save
# DEPENDENCIES: playwright (sync API), exceptions, config.defaults
# ============================================================================
"""
Incident Portal Page Object.

The portal UI is not under our control and its markup shifts between
releases, so every interaction tries a short list of selectors with small
timeouts and moves on when one is missing. Only running out of options is
an error (AutomationError). A visible Entra login form during an
unattended run means the stored session was not honoured and raises
AuthStateExpiredError.

Exports:
    IncidentPage: Page object used by the create-bridge flow
    BridgeAction: Outcome of click_create_bridge
"""

import re
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Locator, Page

from config.defaults import BrowserDefaults
from exceptions import AuthStateExpiredError, AutomationError


# ============================================================================
# SELECTORS
# ============================================================================

SEARCH_INPUT = (
    'input[aria-label="Incident search bar input"], '
    'input[name="searchText"], '
    'input[placeholder*="Search by incident ID" i]'
)

LOGIN_FORM = 'input[type="email"], input[name="loginfmt"], input[type="password"], input[name="passwd"]'

ENTRA_SELECTORS = (
    'text="Microsoft Entra ID"',
    'text="Micrsosft Entra ID"',
    'text=/Entra ID|Entra/i',
)

SIGN_IN_SELECTORS = (
    'button:has-text("Sign in")',
    'a:has-text("Sign in")',
    'text="Sign in"',
    'text=/^\\s*Sign in\\s*$/i',
)

LOGIN_SUBMIT_SELECTORS = (
    '#idSIButton9',
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Sign in")',
    'button:has-text("Next")',
)

JOIN_BRIDGE = 'button:has-text("Join bridge")'
CREATE_BRIDGE = 'button:has-text("Create bridge")'
CREATE_BRIDGE_MENU_ITEM = 'text=/Create bridge/i'

MORE_SELECTORS = (
    'text=/More actions/i',
    'button:has-text("More actions")',
    'button:has-text("More")',
    '[aria-label="More actions"]',
    '[aria-label="More"]',
    'button[title="More actions"]',
    'button:has-text("...")',
    '.more-actions',
)

COLLABORATION_HEADING = 'text=/Create Collaboration Experience|Create Teams Collaboration|Create Collaboration/i'
TEAMS_TAB = 'span.ms-Pivot-text:has-text("Create Teams Collaboration")'
ENGINEERING_RADIO_IN_LABEL = 'label:has-text("Engineering") input[type="radio"]'
ENGINEERING_LABEL = 'label:has-text("Engineering")'

SAVE_SELECTORS = (
    'button:has-text("Save")',
    'button[type="submit"]:has-text("Save")',
    '[data-automation-id="save-button"]',
    'button.ms-Button--primary:has-text("Save")',
    'text=/^Save$/i',
)

SUCCESS_SELECTORS = (
    '[role="alert"]:has-text("Success")',
    '[role="status"]:has-text("Success")',
    '.ms-MessageBar:has-text("Success")',
    'text=/Success|saved successfully|created successfully/i',
)

# Fills in when both credential fields hold a value
_CREDENTIALS_ENTERED_JS = """() => {
    const email = document.querySelector('input[name="loginfmt"], input[type="email"], input[name="username"]');
    const pass = document.querySelector('input[name="passwd"], input[type="password"], input[name="password"]');
    return !!(email && email.value && pass && pass.value);
}"""

MORE_MENU_WINDOW_SECONDS = 5.0
QUICK_TIMEOUT_MS = 2_000
CLICK_TIMEOUT_MS = 5_000
SETTLE_TIMEOUT_MS = 10_000


@dataclass
class BridgeAction:
    already_created: bool
    message: str


ALREADY_CREATED = "This incident already has a bridge"
DIALOG_OPENED = "Create bridge dialog opened"


class IncidentPage:
    """
    Page object over a Playwright Page.

    Args:
        page: Playwright sync Page
        log: Optional line logger
        interactive_login: An operator may complete a login form (manual mode)
    """

    def __init__(self, page: Page, log: Optional[Callable[[str], object]] = None,
                 interactive_login: bool = False):
        self.page = page
        self.log = log or (lambda message: None)
        self.interactive_login = interactive_login

    # ========================================================================
    # LOCATOR HELPERS
    # ========================================================================

    @staticmethod
    def _is_visible(locator: Locator) -> bool:
        try:
            return locator.is_visible()
        except PlaywrightError:
            return False

    @staticmethod
    def _exists(locator: Locator) -> bool:
        try:
            return locator.count() > 0
        except PlaywrightError:
            return False

    @staticmethod
    def _wait_visible(locator: Locator, timeout_ms: int) -> bool:
        try:
            locator.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PlaywrightError:
            return False

    def _first_existing(self, selectors: Iterable[str]) -> Optional[Locator]:
        for selector in selectors:
            locator = self.page.locator(selector).first
            if self._exists(locator):
                return locator
        return None

    def _settle(self) -> None:
        """Best-effort wait for network quiet; SPAs with long polling never get there."""
        try:
            self.page.wait_for_load_state("networkidle", timeout=SETTLE_TIMEOUT_MS)
        except PlaywrightError:
            pass

    def _login_form_visible(self) -> bool:
        return self._is_visible(self.page.locator(LOGIN_FORM).first)

    # ========================================================================
    # NAVIGATION AND SIGN-IN
    # ========================================================================

    def goto_search(self, url: str) -> None:
        """
        Open the portal and get past the sign-in chooser.

        Raises:
            AuthStateExpiredError: Login form shown during an unattended run
        """
        response = self.page.goto(url, wait_until="domcontentloaded", timeout=BrowserDefaults.NAVIGATION_TIMEOUT_MS)
        self.log(f"navigated url={self.page.url} status={response.status if response else 'n/a'}")
        self._settle()

        entra = self._first_existing(ENTRA_SELECTORS)
        if entra is not None:
            try:
                entra.click(timeout=CLICK_TIMEOUT_MS)
                self._settle()
            except PlaywrightError as e:
                self.log(f"Entra ID tile click failed: {e}")

        signed_in_clicked = False
        sign_in = self._first_existing(SIGN_IN_SELECTORS)
        if sign_in is not None:
            try:
                sign_in.click(timeout=CLICK_TIMEOUT_MS)
                signed_in_clicked = True
            except PlaywrightError as e:
                self.log(f"Sign in click failed: {e}")

        if self._login_form_visible():
            self._handle_login_form()
            return

        search_timeout = (BrowserDefaults.MANUAL_LOGIN_TIMEOUT_MS
                          if signed_in_clicked and self.interactive_login
                          else BrowserDefaults.ACTION_TIMEOUT_MS)
        try:
            self.page.wait_for_selector(SEARCH_INPUT, timeout=search_timeout)
            return
        except PlaywrightError:
            pass

        if self._login_form_visible():
            self._handle_login_form()
            return

        # Search box absent but no login either; search_incident reports it
        self.log("search input not visible after navigation")

    def _handle_login_form(self) -> None:
        if not self.interactive_login:
            raise AuthStateExpiredError(
                "Detected Entra login form. MSAuth.json may be expired or invalid, "
                "or conditional access is blocking this browser."
            )

        self.log("Detected login form. Waiting for credentials to be entered...")
        self.page.wait_for_function(_CREDENTIALS_ENTERED_JS, timeout=BrowserDefaults.MANUAL_LOGIN_TIMEOUT_MS)

        submit = self._first_existing(LOGIN_SUBMIT_SELECTORS)
        if submit is not None:
            try:
                submit.click(timeout=CLICK_TIMEOUT_MS)
            except PlaywrightError as e:
                self.log(f"Login submit click failed: {e}")

        self.page.wait_for_selector(SEARCH_INPUT, timeout=BrowserDefaults.MANUAL_LOGIN_TIMEOUT_MS)

    # ========================================================================
    # INCIDENT SEARCH
    # ========================================================================

    def search_incident(self, incident_id: str) -> None:
        search = self.page.locator(SEARCH_INPUT).first
        try:
            search.wait_for(state="visible", timeout=BrowserDefaults.ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            raise AutomationError(f"Incident search box not found: {e}") from e
        search.click(timeout=CLICK_TIMEOUT_MS)
        search.fill(str(incident_id))
        search.press("Enter")

    def wait_for_details(self, incident_id: str) -> None:
        pattern = re.compile(f".*incidents/details/{re.escape(str(incident_id))}/.*")
        try:
            self.page.wait_for_url(pattern, timeout=BrowserDefaults.ACTION_TIMEOUT_MS)
        except PlaywrightError as e:
            raise AutomationError(f"Incident {incident_id} details page did not open: {e}") from e
        self._settle()

    # ========================================================================
    # CREATE BRIDGE
    # ========================================================================

    def click_create_bridge(self) -> BridgeAction:
        """
        Open the Create bridge dialog.

        Order: "Join bridge" visible (already created), direct button, the
        "More actions" menu by role, then the fallback menu selectors for up
        to five seconds. Finding no entry point means the bridge exists.
        """
        if self._is_visible(self.page.locator(JOIN_BRIDGE).first):
            return BridgeAction(True, ALREADY_CREATED)

        direct = self.page.locator(CREATE_BRIDGE).first
        if self._is_visible(direct):
            self.log('Found direct "Create bridge" button')
            direct.click(timeout=QUICK_TIMEOUT_MS)
            return BridgeAction(False, DIALOG_OPENED)

        self.log('"Create bridge" not directly visible, trying "More actions" menu')
        try:
            more = self.page.get_by_role("button", name=re.compile("More actions", re.I)).first
            more.wait_for(state="visible", timeout=QUICK_TIMEOUT_MS)
            more.click(timeout=QUICK_TIMEOUT_MS)

            item = self.page.get_by_text(re.compile("Create bridge", re.I)).first
            if not self._wait_visible(item, QUICK_TIMEOUT_MS):
                self.log("Create bridge not in More actions menu")
                self._press_escape()
                return BridgeAction(True, ALREADY_CREATED)

            item.click(timeout=QUICK_TIMEOUT_MS)
            return BridgeAction(False, DIALOG_OPENED)
        except PlaywrightError:
            pass

        deadline = time.monotonic() + MORE_MENU_WINDOW_SECONDS
        for selector in MORE_SELECTORS:
            if time.monotonic() > deadline:
                break
            more = self.page.locator(selector).first
            if not self._is_visible(more):
                continue
            try:
                more.click(timeout=QUICK_TIMEOUT_MS)
                item = self.page.locator(CREATE_BRIDGE_MENU_ITEM).first
                if self._is_visible(item):
                    item.click(timeout=QUICK_TIMEOUT_MS)
                    return BridgeAction(False, DIALOG_OPENED)
                self._press_escape()
            except PlaywrightError:
                continue

        return BridgeAction(True, ALREADY_CREATED)

    def _press_escape(self) -> None:
        try:
            self.page.keyboard.press("Escape")
        except PlaywrightError:
            pass

    def select_engineering_option(self) -> None:
        """
        Pick the Engineering collaboration type.

        Raises:
            AutomationError: No strategy located the option
        """
        self._wait_visible(self.page.locator(COLLABORATION_HEADING).first, CLICK_TIMEOUT_MS)

        tab = self.page.locator(TEAMS_TAB).first
        if self._exists(tab):
            try:
                tab.click(timeout=1_000)
            except PlaywrightError:
                pass

        for strategy in (self._engineering_by_role, self._engineering_by_label_radio,
                         self._engineering_by_label, self._engineering_by_text):
            try:
                if strategy():
                    self.log("Engineering option selected")
                    return
            except PlaywrightError:
                continue

        raise AutomationError("Engineering option not found in collaboration form")

    def _engineering_by_role(self) -> bool:
        radio = self.page.get_by_role("radio", name=re.compile("Engineering", re.I)).first
        if not self._exists(radio):
            return False
        radio.check(timeout=QUICK_TIMEOUT_MS)
        return radio.is_checked()

    def _engineering_by_label_radio(self) -> bool:
        radio = self.page.locator(ENGINEERING_RADIO_IN_LABEL).first
        if not self._exists(radio):
            return False
        radio.check(timeout=QUICK_TIMEOUT_MS, force=True)
        return radio.is_checked()

    def _engineering_by_label(self) -> bool:
        label = self.page.locator(ENGINEERING_LABEL).first
        if not self._exists(label):
            return False
        label.click(timeout=QUICK_TIMEOUT_MS)
        return True

    def _engineering_by_text(self) -> bool:
        text = self.page.get_by_text(re.compile("Engineering", re.I)).first
        if not self._exists(text):
            return False
        text.click(timeout=QUICK_TIMEOUT_MS)
        return True

    def click_save(self) -> None:
        """
        Raises:
            AutomationError: Save button not found
        """
        for selector in SAVE_SELECTORS:
            button = self.page.locator(selector).first
            if not self._exists(button):
                continue
            try:
                button.wait_for(state="visible", timeout=QUICK_TIMEOUT_MS)
                button.click(timeout=QUICK_TIMEOUT_MS)
                self.log("Clicked Save button")
                return
            except PlaywrightError:
                continue

        try:
            by_role = self.page.get_by_role("button", name=re.compile("Save", re.I)).first
            if self._exists(by_role):
                by_role.click(timeout=QUICK_TIMEOUT_MS)
                self.log("Clicked Save button via role")
                return
        except PlaywrightError:
            pass

        raise AutomationError("Save button not found")

    def wait_for_success_message(self, timeout_ms: int = BrowserDefaults.SUCCESS_TIMEOUT_MS) -> bool:
        """Poll the known toast/message-bar selectors until one is visible."""
        deadline = time.monotonic() + timeout_ms / 1000.0
        while True:
            for selector in SUCCESS_SELECTORS:
                if self._is_visible(self.page.locator(selector).first):
                    return True
            if time.monotonic() >= deadline:
                return False
            self.page.wait_for_timeout(250)


__all__ = ['IncidentPage', 'BridgeAction', 'SEARCH_INPUT', 'LOGIN_FORM']
