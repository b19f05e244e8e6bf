"""
Configuration Defaults - Single source of truth for all default values.

Every default the Function App falls back to when an app setting is absent
lives here, grouped by concern. Config models reference these constants in
their Field definitions and in from_environment().

Organization:
    - AppDefaults: Application-wide settings
    - AuthStateDefaults: MSAuth.json sources and validation thresholds
    - RunDefaults: Async run lifecycle (status blobs, queue, output limits)
    - ReportDefaults: Playwright HTML report upload
    - BrowserDefaults: Browser selection, timeouts, portal URLs
    - LandingDefaults: Landing page links

Usage:
    from config.defaults import RunDefaults

    container: str = Field(default=RunDefaults.RUNS_CONTAINER, ...)
"""


# =============================================================================
# APPLICATION DEFAULTS
# =============================================================================

class AppDefaults:
    """Application-wide defaults."""

    DEBUG_MODE = False
    ENVIRONMENT = "dev"
    LOG_LEVEL = "INFO"


# =============================================================================
# AUTH STATE DEFAULTS
# =============================================================================

class AuthStateDefaults:
    """
    MSAuth.json (Playwright storage state) retrieval defaults.

    The blob container source falls back to the Function App's own storage
    account (AzureWebJobsStorage) when no dedicated connection is set.
    """

    FILE_NAME = "MSAuth.json"
    BLOB_CONTAINER = "playwright"
    BLOB_NAME = "MSAuth.json"

    # Shape validation: smaller files cannot hold a usable session
    MIN_BYTES = 50
    KEYS_PREVIEW_LIMIT = 10

    # Direct URL download
    URL_MAX_REDIRECTS = 5
    URL_TIMEOUT_SECONDS = 60.0


# =============================================================================
# RUN LIFECYCLE DEFAULTS
# =============================================================================

class RunDefaults:
    """Async create-bridge run defaults."""

    RUNS_CONTAINER = "playwright-runs"
    RUNS_PREFIX = "runs"
    RUN_QUEUE_NAME = "create-bridge-runs"
    MODE = "create-bridge-msauth"

    # 9 minutes keeps the worker inside the 10 minute Consumption limit
    ASYNC_TIMEOUT_MS = 9 * 60 * 1000

    MAX_LOG_LINES = 250
    STATUS_OUTPUT_LIMIT = 50_000
    TRUNCATION_MARKER = "\n...<truncated>\n"


# =============================================================================
# REPORT DEFAULTS
# =============================================================================

class ReportDefaults:
    """Playwright HTML report upload defaults."""

    CONTAINER = "playwright-reports"
    PREFIX_ROOT = "reports"
    INDEX_FILE = "index.html"
    PUBLIC_ACCESS_LEVELS = ("blob", "container")


# =============================================================================
# BROWSER DEFAULTS
# =============================================================================

class BrowserDefaults:
    """Browser automation defaults."""

    BROWSER = "edge"
    MANUAL_AUTH_BROWSER = "chrome"

    SYNC_TIMEOUT_MS = 20 * 60 * 1000
    WORKSPACE_TIMEOUT_MS = 5 * 60 * 1000

    # Child process output captured before truncation
    PROCESS_OUTPUT_LIMIT = 250_000

    CDP_URL = "http://127.0.0.1:9222"

    PORTAL_BASE_URL = "https://ppeportal.microsofticm.com"
    OVERVIEW_PATH = "/imp/v3/overview/main"
    ADVANCED_SEARCH_PATH = "/imp/v3/incidents/search/advanced"

    NAVIGATION_TIMEOUT_MS = 60_000
    ACTION_TIMEOUT_MS = 15_000
    SUCCESS_TIMEOUT_MS = 15_000
    MANUAL_LOGIN_TIMEOUT_MS = 10 * 60 * 1000

    # Playwright Workspaces (remote browsers)
    WORKSPACE_API_VERSION = "2023-10-01"
    WORKSPACE_OS = "linux"
    WORKSPACE_TOKEN_SCOPE = "https://management.core.windows.net/.default"

    REPORT_DIR_NAME = "playwright-report"


# =============================================================================
# LANDING PAGE DEFAULTS
# =============================================================================

class LandingDefaults:
    """Landing page defaults."""

    ENDPOINT = "create-bridge-msauth"
    LOCAL_BASE_URL = "http://localhost:7075"
