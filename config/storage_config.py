"""
Run Status, Queue and Report Storage Configuration.

Exports:
    StorageConfig: Pydantic storage configuration model
"""

import os
from typing import Optional
from pydantic import BaseModel, Field

from .defaults import RunDefaults, ReportDefaults
from .runtime_config import parse_flag


class StorageConfig(BaseModel):
    """
    Blob containers and queue used by the async run lifecycle.

    All of them live in the Function App's own storage account
    (AzureWebJobsStorage).
    """

    connection_string: Optional[str] = Field(
        default=None,
        repr=False,
        description="AzureWebJobsStorage connection string"
    )

    runs_container: str = Field(
        default=RunDefaults.RUNS_CONTAINER,
        description="Container holding runs/<runId>.json status documents"
    )

    run_queue_name: str = Field(
        default=RunDefaults.RUN_QUEUE_NAME,
        description="Storage queue carrying run messages to the worker"
    )

    reports_container: str = Field(
        default=ReportDefaults.CONTAINER,
        description="Container for uploaded Playwright HTML reports"
    )

    reports_prefix: Optional[str] = Field(
        default=None,
        description="Fixed blob prefix for reports (default reports/<runId>)"
    )

    reports_upload_enabled: Optional[bool] = Field(
        default=None,
        description="REPORTS_UPLOAD_ENABLED - None means upload only inside Azure"
    )

    reports_public_access: Optional[str] = Field(
        default=None,
        description="Container public access level to apply: blob or container"
    )

    @classmethod
    def from_environment(cls) -> "StorageConfig":
        """Load from environment variables."""
        return cls(
            connection_string=os.environ.get("AzureWebJobsStorage") or None,
            runs_container=os.environ.get("RUNS_BLOB_CONTAINER") or RunDefaults.RUNS_CONTAINER,
            run_queue_name=os.environ.get("RUN_QUEUE_NAME") or RunDefaults.RUN_QUEUE_NAME,
            reports_container=os.environ.get("REPORTS_BLOB_CONTAINER") or ReportDefaults.CONTAINER,
            reports_prefix=os.environ.get("REPORTS_BLOB_PREFIX") or None,
            reports_upload_enabled=parse_flag(os.environ.get("REPORTS_UPLOAD_ENABLED")),
            reports_public_access=cls._normalize_public_access(os.environ.get("REPORTS_PUBLIC_ACCESS")),
        )

    @staticmethod
    def _normalize_public_access(value: Optional[str]) -> Optional[str]:
        """Map REPORTS_PUBLIC_ACCESS to an Azure access level (truthy means blob)."""
        if not value:
            return None
        level = value.strip().lower()
        if level in ReportDefaults.PUBLIC_ACCESS_LEVELS:
            return level
        if level in ("1", "true", "yes", "public"):
            return "blob"
        return None

    def debug_dict(self) -> dict:
        return {
            "connection_string": "***MASKED***" if self.connection_string else None,
            "runs_container": self.runs_container,
            "run_queue_name": self.run_queue_name,
            "reports_container": self.reports_container,
            "reports_prefix": self.reports_prefix,
            "reports_upload_enabled": self.reports_upload_enabled,
            "reports_public_access": self.reports_public_access,
        }
