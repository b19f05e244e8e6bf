"""
Root conftest.py: sys.path, env vars, shared fixtures.

Sets up the test environment so all production code can be imported
without Azure Storage, Key Vault or a browser.
"""

import os
import sys

import pytest

# Add project root to sys.path so 'core', 'services', 'config', etc. are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import reset_config  # noqa: E402


# App settings that switch behaviour (cloud detection, auth sources, browser
# mode). Cleared for every test so the developer's shell cannot leak in.
BEHAVIOUR_ENV_VARS = [
    "AzureWebJobsStorage",
    "WEBSITE_INSTANCE_ID",
    "WEBSITE_RUN_FROM_PACKAGE",
    "PLAYWRIGHT_SERVICE_URL",
    "PLAYWRIGHT_SERVICE_ACCESS_TOKEN",
    "KEYVAULT_URL",
    "MSAUTH_SECRET_NAME",
    "MSAUTH_BLOB_URL",
    "MSAUTH_BLOB_CONNECTION",
    "MSAUTH_BLOB_ACCOUNT_URL",
    "MSAUTH_BLOB_CONTAINER",
    "MSAUTH_BLOB_NAME",
    "MSAUTH_WRITE_PATH",
    "MSAUTH_FORCE_REFRESH",
    "MSAUTH_PATH",
    "BROWSER",
    "HEADED",
    "PWHEADLESS",
    "AUTH_MODE",
    "FUNCTION_TIMEOUT_MS",
    "FUNCTION_TIMEOUT_MS_ASYNC",
    "CDP_PORT",
    "CDP_URL",
    "EDGE_CDP_PORT",
    "EDGE_CDP_URL",
    "EDGE_REMOTE_DEBUGGING_PORT",
    "CHROME_CDP_PORT",
    "CHROME_CDP_URL",
    "CHROME_REMOTE_DEBUGGING_PORT",
    "RUNS_BLOB_CONTAINER",
    "RUN_QUEUE_NAME",
    "REPORTS_BLOB_CONTAINER",
    "REPORTS_BLOB_PREFIX",
    "REPORTS_UPLOAD_ENABLED",
    "REPORTS_PUBLIC_ACCESS",
    "CREATE_BRIDGE_BASE_URL",
    "CREATE_BRIDGE_ENDPOINT",
    "LANDING_INCIDENTS",
    "INCIDENT_NUMBER",
    "PORTAL_BASE_URL",
]


@pytest.fixture(autouse=True, scope="session")
def set_minimal_env_vars():
    """
    Set minimal environment variables to prevent import crashes.

    Modules read env vars through config at import time (function_app,
    logger levels). We provide safe defaults so imports succeed without
    Azure infrastructure.
    """
    defaults = {
        "ENVIRONMENT": "dev",
        "DEBUG_LOGGING": "false",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Clear behaviour switches, point REPORT_DIR at tmp, drop the config singleton."""
    for var in BEHAVIOUR_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("REPORT_DIR", str(tmp_path / "playwright-report"))
    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def function_root(tmp_path):
    """Empty directory standing in for the Function App root."""
    root = tmp_path / "wwwroot"
    root.mkdir()
    return root
