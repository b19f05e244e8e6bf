"""
Hosting Runtime Configuration.

Describes where the Function App is running. Several behaviours switch on
this: the auth chain forces a network refresh in the cloud, MSAuth.json is
written to a temp directory under run-from-package, and reports upload
automatically inside Azure.

Exports:
    RuntimeConfig: Pydantic runtime configuration model
    parse_flag: Parse a truthy/falsy app setting
"""

import os
from typing import Optional
from pydantic import BaseModel, Field


_FALSY = ("0", "false", "no", "off", "")


def parse_flag(value: Optional[str]) -> Optional[bool]:
    """
    Parse an app setting used as a switch.

    Returns None when the setting is absent so callers can tell
    "explicitly off" from "not configured". Any value other than
    0/false/no/off counts as on.
    """
    if value is None:
        return None
    return value.strip().lower() not in _FALSY


class RuntimeConfig(BaseModel):
    """Azure Functions hosting environment."""

    website_instance_id: Optional[str] = Field(
        default=None,
        description="WEBSITE_INSTANCE_ID - present only when running inside Azure App Service / Functions"
    )

    run_from_package: Optional[str] = Field(
        default=None,
        description="WEBSITE_RUN_FROM_PACKAGE - wwwroot is read-only when set"
    )

    playwright_service_url: Optional[str] = Field(
        default=None,
        description="PLAYWRIGHT_SERVICE_URL - Playwright Workspaces browsers endpoint (wss://...)"
    )

    webjobs_storage: Optional[str] = Field(
        default=None,
        repr=False,
        description="AzureWebJobsStorage - Function App storage connection string"
    )

    @property
    def is_azure(self) -> bool:
        return bool(self.website_instance_id)

    @property
    def is_cloud(self) -> bool:
        """Running in Azure or driving remote browsers on Playwright Workspaces."""
        return bool(self.website_instance_id or self.playwright_service_url)

    @property
    def is_run_from_package(self) -> bool:
        return bool(self.run_from_package)

    @classmethod
    def from_environment(cls) -> "RuntimeConfig":
        """Load from environment variables."""
        return cls(
            website_instance_id=os.environ.get("WEBSITE_INSTANCE_ID") or None,
            run_from_package=os.environ.get("WEBSITE_RUN_FROM_PACKAGE") or None,
            playwright_service_url=os.environ.get("PLAYWRIGHT_SERVICE_URL") or None,
            webjobs_storage=os.environ.get("AzureWebJobsStorage") or None,
        )

    def debug_dict(self) -> dict:
        return {
            "has_website_instance_id": self.is_azure,
            "run_from_package": self.is_run_from_package,
            "has_playwright_service_url": bool(self.playwright_service_url),
            "webjobs_storage": "***MASKED***" if self.webjobs_storage else None,
        }
