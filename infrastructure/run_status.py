# ============================================================================
# RUN STATUS REPOSITORY
# ============================================================================
# STATUS: Infrastructure - Run status persistence in blob storage
# PURPOSE: Read and write runs/<runId>.json documents
# DEPENDENCIES: infrastructure.blob, core.models.run, config
# ============================================================================
"""
Run Status Repository.

Each run is one JSON document, runs/<runId>.json, in the runs container of
the Function App's own storage account. Writes replace the whole document;
there is no locking because only the HTTP trigger (once, queued) and the
single worker handling the message ever write a given runId.

Usage:
    repo = RunStatusRepository.from_config()
    repo.write(status)
    status = repo.read(run_id)  # None when the run does not exist
"""

import re
from typing import Optional

from azure.core.exceptions import ResourceNotFoundError

from config import get_config
from config.defaults import RunDefaults
from core.models import RunStatus
from exceptions import ConfigurationError, RunStatusStorageError
from util_logger import LoggerFactory, ComponentType
from .blob import IBlobRepository, BlobRepository

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "RunStatusRepository")

_RUN_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def run_blob_name(run_id: str) -> str:
    """runs/<runId>.json; rejects ids that could escape the prefix."""
    if not run_id or not _RUN_ID_PATTERN.match(run_id):
        raise ValueError(f"Invalid runId: {run_id!r}")
    return f"{RunDefaults.RUNS_PREFIX}/{run_id}.json"


class RunStatusRepository:
    """Blob-backed store for RunStatus documents."""

    def __init__(self, blob_repo: IBlobRepository, container: str = RunDefaults.RUNS_CONTAINER):
        self.blob_repo = blob_repo
        self.container = container
        self._container_ready = False

    @classmethod
    def from_config(cls) -> "RunStatusRepository":
        """
        Build from AzureWebJobsStorage and RUNS_BLOB_CONTAINER.

        Raises:
            ConfigurationError: AzureWebJobsStorage is not set
        """
        storage = get_config().storage
        if not storage.connection_string:
            raise ConfigurationError("AzureWebJobsStorage is not set; run status storage is unavailable")
        return cls(BlobRepository.from_connection_string(storage.connection_string), storage.runs_container)

    def write(self, status: RunStatus) -> None:
        """
        Persist the full status document.

        Raises:
            RunStatusStorageError: Blob write failed
        """
        blob_name = run_blob_name(status.run_id)
        try:
            if not self._container_ready:
                self.blob_repo.ensure_container(self.container)
                self._container_ready = True
            self.blob_repo.write_blob(
                self.container,
                blob_name,
                status.to_json().encode("utf-8"),
                overwrite=True,
                content_type="application/json",
            )
        except Exception as e:
            logger.error(f"❌ Failed to write run status {status.run_id}: {e}")
            raise RunStatusStorageError(f"Failed to write run status {status.run_id}: {e}") from e

        logger.debug(f"📝 Run {status.run_id} -> {status.state.value}")

    def read(self, run_id: str) -> Optional[RunStatus]:
        """
        Load a status document.

        Returns:
            RunStatus, or None when no document exists for run_id

        Raises:
            ValueError: run_id is malformed
            RunStatusStorageError: Blob read or JSON parse failed
        """
        blob_name = run_blob_name(run_id)
        try:
            data = self.blob_repo.read_blob(self.container, blob_name)
        except ResourceNotFoundError:
            return None
        except Exception as e:
            logger.error(f"❌ Failed to read run status {run_id}: {e}")
            raise RunStatusStorageError(f"Failed to read run status {run_id}: {e}") from e

        try:
            return RunStatus.from_json(data)
        except ValueError as e:
            raise RunStatusStorageError(f"Run status {run_id} is not valid JSON: {e}") from e


__all__ = ['RunStatusRepository', 'run_blob_name']
