# ============================================================================
# BLOB REPOSITORY
# ============================================================================
# STATUS: Infrastructure - Azure Blob Storage repository
# PURPOSE: Blob access for MSAuth.json, run status documents and HTML reports
# DEPENDENCIES: azure-storage-blob, azure-identity, azure-core, util_logger
# ============================================================================

"""
Blob Storage Repository.

One BlobRepository wraps one BlobServiceClient. Unlike a single app-wide
singleton, the app talks to up to two accounts (a dedicated MSAuth.json
account and the Function App's own AzureWebJobsStorage account), so
instances are created per connection source:

    BlobRepository.from_connection_string(conn_str)
    BlobRepository.from_account_url("https://acct.blob.core.windows.net")

Authentication Hierarchy (account URL mode, DefaultAzureCredential):
1. Environment variables (AZURE_CLIENT_ID, etc.)
2. Managed Identity (in Azure)
3. Azure CLI (local development)

Usage:
    repo = BlobRepository.from_connection_string(os.environ["AzureWebJobsStorage"])
    repo.ensure_container("playwright-runs")
    repo.write_blob("playwright-runs", "runs/abc.json", data, content_type="application/json")
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Union, BinaryIO

from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError

from util_logger import LoggerFactory, ComponentType
from infrastructure.auth import get_azure_credential

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "BlobRepository")


# ============================================================================
# BLOB REPOSITORY INTERFACE
# ============================================================================

class IBlobRepository(ABC):
    """
    Blob operations the rest of the app depends on.

    Run status storage and report upload take an IBlobRepository so tests
    can substitute an in-memory implementation.
    """

    @abstractmethod
    def ensure_container(self, container: str, public_access: Optional[str] = None) -> bool:
        """Create the container if missing. Returns True when it was created."""

    @abstractmethod
    def set_public_access(self, container: str, public_access: str) -> None:
        pass

    @abstractmethod
    def container_exists(self, container: str) -> bool:
        pass

    @abstractmethod
    def read_blob(self, container: str, blob_path: str) -> bytes:
        """Raises azure.core.exceptions.ResourceNotFoundError when absent."""

    @abstractmethod
    def download_blob(self, container: str, blob_path: str) -> Tuple[bytes, Dict[str, Any]]:
        """Content plus properties (etag, last_modified, size)."""

    @abstractmethod
    def write_blob(self, container: str, blob_path: str, data: Union[bytes, BinaryIO],
                   overwrite: bool = True, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        pass

    @abstractmethod
    def blob_exists(self, container: str, blob_path: str) -> bool:
        pass

    @abstractmethod
    def blob_url(self, container: str, blob_path: str) -> str:
        pass


# ============================================================================
# AZURE IMPLEMENTATION
# ============================================================================

class BlobRepository(IBlobRepository):
    """
    Azure Blob Storage repository bound to a single storage account.

    Container clients are cached per container for connection reuse.
    """

    def __init__(self, blob_service: BlobServiceClient):
        self.blob_service = blob_service
        self.storage_account = blob_service.account_name
        self._container_clients: Dict[str, ContainerClient] = {}

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "BlobRepository":
        logger.debug("Initializing BlobRepository with connection string")
        return cls(BlobServiceClient.from_connection_string(connection_string))

    @classmethod
    def from_account_url(cls, account_url: str) -> "BlobRepository":
        logger.debug(f"Initializing BlobRepository with DefaultAzureCredential for {account_url}")
        return cls(BlobServiceClient(account_url=account_url, credential=get_azure_credential()))

    def _get_container_client(self, container: str) -> ContainerClient:
        if container not in self._container_clients:
            self._container_clients[container] = self.blob_service.get_container_client(container)
        return self._container_clients[container]

    # ========================================================================
    # CONTAINER OPERATIONS
    # ========================================================================

    def ensure_container(self, container: str, public_access: Optional[str] = None) -> bool:
        """
        Create the container if it does not exist.

        Args:
            container: Container name
            public_access: Optional anonymous access level ("blob" or "container")

        Returns:
            True if the container was created by this call
        """
        container_client = self._get_container_client(container)
        try:
            container_client.create_container(public_access=public_access)
            logger.info(f"📦 Created container: {container}")
            return True
        except ResourceExistsError:
            return False

    def set_public_access(self, container: str, public_access: str) -> None:
        """Apply an anonymous access level to an existing container."""
        container_client = self._get_container_client(container)
        container_client.set_container_access_policy(signed_identifiers={}, public_access=public_access)
        logger.info(f"🌐 Container {container} public access set to {public_access}")

    def container_exists(self, container: str) -> bool:
        return self._get_container_client(container).exists()

    # ========================================================================
    # CORE BLOB OPERATIONS
    # ========================================================================

    def read_blob(self, container: str, blob_path: str) -> bytes:
        """
        Read entire blob to memory.

        Raises:
            ResourceNotFoundError: If blob doesn't exist
        """
        data, _ = self.download_blob(container, blob_path)
        return data

    def download_blob(self, container: str, blob_path: str) -> Tuple[bytes, Dict[str, Any]]:
        """
        Read a blob together with the properties of the version read.

        Returns:
            (content, {'etag', 'last_modified', 'size'})
        """
        try:
            blob_client = self._get_container_client(container).get_blob_client(blob_path)

            logger.debug(f"Reading blob: {container}/{blob_path}")
            downloader = blob_client.download_blob()
            data = downloader.readall()
            props = downloader.properties

            return data, {
                'etag': props.etag,
                'last_modified': props.last_modified.isoformat() if props.last_modified else None,
                'size': props.size,
            }

        except ResourceNotFoundError:
            logger.debug(f"Blob not found: {container}/{blob_path}")
            raise
        except Exception as e:
            logger.error(f"Failed to read blob {container}/{blob_path}: {e}")
            raise

    def write_blob(self, container: str, blob_path: str, data: Union[bytes, BinaryIO],
                   overwrite: bool = True, content_type: str = "application/octet-stream") -> Dict[str, Any]:
        """
        Write blob from bytes or stream.

        Returns:
            Dict with container, blob_path, etag, last_modified
        """
        try:
            blob_client = self._get_container_client(container).get_blob_client(blob_path)

            logger.debug(f"Writing blob: {container}/{blob_path} (overwrite={overwrite})")

            result = blob_client.upload_blob(
                data,
                overwrite=overwrite,
                content_settings=ContentSettings(content_type=content_type),
            )

            last_modified = result.get('last_modified') if result else None
            return {
                'container': container,
                'blob_path': blob_path,
                'etag': result.get('etag') if result else None,
                'last_modified': last_modified.isoformat() if last_modified else None,
            }

        except Exception as e:
            logger.error(f"Failed to write blob {container}/{blob_path}: {e}")
            raise

    def blob_exists(self, container: str, blob_path: str) -> bool:
        blob_client = self._get_container_client(container).get_blob_client(blob_path)
        return blob_client.exists()

    def blob_url(self, container: str, blob_path: str) -> str:
        """Public URL of a blob (no SAS)."""
        return self._get_container_client(container).get_blob_client(blob_path).url


__all__ = [
    'IBlobRepository',
    'BlobRepository',
]
