"""
Config test fixtures: clean environment via monkeypatch.
"""

import pytest


@pytest.fixture
def clean_env(monkeypatch):
    """Remove all env vars that config modules might read, for isolation."""
    env_vars_to_clear = [
        "ENVIRONMENT", "DEBUG_MODE", "LOG_LEVEL", "REPORT_DIR",
        "CREATE_BRIDGE_BASE_URL", "CREATE_BRIDGE_ENDPOINT", "LANDING_INCIDENTS",
        "KEYVAULT_URL", "MSAUTH_SECRET_NAME", "MSAUTH_BLOB_URL",
        "MSAUTH_BLOB_CONNECTION", "MSAUTH_BLOB_ACCOUNT_URL",
        "MSAUTH_BLOB_CONTAINER", "MSAUTH_BLOB_NAME", "AzureWebJobsStorage",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
