"""
Auth State (MSAuth.json) Source Configuration.

Three network sources can supply the Playwright storage state:
    - Key Vault secret (KEYVAULT_URL + MSAUTH_SECRET_NAME)
    - Direct URL, public or SAS (MSAUTH_BLOB_URL)
    - Blob container (MSAUTH_BLOB_CONNECTION, AzureWebJobsStorage or
      MSAUTH_BLOB_ACCOUNT_URL with DefaultAzureCredential)

"Configured" only counts explicit MSAUTH_* settings. The ambient
AzureWebJobsStorage connection makes the blob source *possible* but does
not make a missing blob an error in strict mode.

Exports:
    AuthStateConfig: Pydantic auth source configuration
    safe_url: Strip query string and fragment so SAS tokens never reach logs
"""

import os
from typing import Optional
from urllib.parse import urlsplit
from pydantic import BaseModel, Field

from .defaults import AuthStateDefaults
from .runtime_config import parse_flag


def safe_url(url: Optional[str]) -> Optional[str]:
    """Return scheme://host/path for logging, or None for empty input."""
    if not url:
        return None
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<invalid url>"
    if not parts.scheme or not parts.netloc:
        return "<invalid url>"
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


class AuthStateConfig(BaseModel):
    """Auth state sources and local cache location."""

    keyvault_url: Optional[str] = Field(default=None, description="Key Vault URI (https://<name>.vault.azure.net/)")
    secret_name: Optional[str] = Field(default=None, description="Secret holding the MSAuth.json document")

    blob_url: Optional[str] = Field(
        default=None,
        repr=False,
        description="Direct download URL for MSAuth.json (may carry a SAS token)"
    )

    blob_connection: Optional[str] = Field(
        default=None,
        repr=False,
        description="Dedicated storage connection string for the MSAuth.json blob"
    )
    webjobs_storage: Optional[str] = Field(
        default=None,
        repr=False,
        description="AzureWebJobsStorage fallback connection"
    )
    blob_account_url: Optional[str] = Field(
        default=None,
        description="Storage account URL used with DefaultAzureCredential"
    )

    blob_container: str = Field(default=AuthStateDefaults.BLOB_CONTAINER)
    blob_name: str = Field(default=AuthStateDefaults.BLOB_NAME)
    blob_container_explicit: bool = Field(default=False, description="MSAUTH_BLOB_CONTAINER was set")
    blob_name_explicit: bool = Field(default=False, description="MSAUTH_BLOB_NAME was set")

    write_path: Optional[str] = Field(
        default=None,
        description="Override for where the downloaded MSAuth.json is written"
    )

    force_refresh: Optional[bool] = Field(
        default=None,
        description="MSAUTH_FORCE_REFRESH - None means decide from the runtime"
    )

    @property
    def key_vault_configured(self) -> bool:
        return bool(self.keyvault_url and self.secret_name)

    @property
    def blob_url_configured(self) -> bool:
        return bool(self.blob_url)

    @property
    def blob_configured(self) -> bool:
        """Explicit blob container settings were provided."""
        return bool(
            self.blob_connection
            or self.blob_account_url
            or self.blob_container_explicit
            or self.blob_name_explicit
        )

    @property
    def blob_client_possible(self) -> bool:
        return bool(self.blob_connection or self.webjobs_storage or self.blob_account_url)

    @property
    def any_configured(self) -> bool:
        return self.key_vault_configured or self.blob_url_configured or self.blob_configured

    @property
    def blob_connection_string(self) -> Optional[str]:
        return self.blob_connection or self.webjobs_storage

    @classmethod
    def from_environment(cls) -> "AuthStateConfig":
        """Load from environment variables."""
        container = os.environ.get("MSAUTH_BLOB_CONTAINER")
        name = os.environ.get("MSAUTH_BLOB_NAME")
        return cls(
            keyvault_url=os.environ.get("KEYVAULT_URL") or None,
            secret_name=os.environ.get("MSAUTH_SECRET_NAME") or None,
            blob_url=os.environ.get("MSAUTH_BLOB_URL") or None,
            blob_connection=os.environ.get("MSAUTH_BLOB_CONNECTION") or None,
            webjobs_storage=os.environ.get("AzureWebJobsStorage") or None,
            blob_account_url=os.environ.get("MSAUTH_BLOB_ACCOUNT_URL") or None,
            blob_container=container or AuthStateDefaults.BLOB_CONTAINER,
            blob_name=name or AuthStateDefaults.BLOB_NAME,
            blob_container_explicit=bool(container),
            blob_name_explicit=bool(name),
            write_path=os.environ.get("MSAUTH_WRITE_PATH") or None,
            force_refresh=parse_flag(os.environ.get("MSAUTH_FORCE_REFRESH")),
        )

    def debug_dict(self) -> dict:
        """Configuration summary with connection strings masked and SAS stripped."""
        return {
            "keyvault_url": self.keyvault_url,
            "secret_name": self.secret_name,
            "blob_url": safe_url(self.blob_url),
            "blob_connection": "***MASKED***" if self.blob_connection else None,
            "has_webjobs_storage": bool(self.webjobs_storage),
            "blob_account_url": self.blob_account_url,
            "blob_container": self.blob_container,
            "blob_name": self.blob_name,
            "write_path": self.write_path,
            "force_refresh": self.force_refresh,
        }
