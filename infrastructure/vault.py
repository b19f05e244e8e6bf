# ============================================================================
# VAULT REPOSITORY
# ============================================================================
# STATUS: Infrastructure - Azure Key Vault repository
# PURPOSE: Read the MSAuth.json secret from Key Vault
# DEPENDENCIES: azure.keyvault.secrets, azure.core, util_logger
# ============================================================================

"""
Azure Key Vault Repository - Secret Retrieval

Provides access to the stored browser session (MSAuth.json) when it is kept
as a Key Vault secret, following the same repository pattern as the blob
layer.

Security Features:
- DefaultAzureCredential for managed identity authentication
- Secret values never logged
- Explicit VaultAccessError for every failure mode
"""

from typing import Any, Dict, Optional

from azure.keyvault.secrets import SecretClient
from azure.core.exceptions import AzureError

from util_logger import LoggerFactory, ComponentType
from infrastructure.auth import get_azure_credential

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "VaultRepository")


class VaultAccessError(Exception):
    """Custom exception for vault access failures"""
    pass


class VaultRepository:
    """
    Azure Key Vault repository.

    Usage:
        vault_repo = VaultRepository("https://bridge-kv.vault.azure.net/")
        secret = vault_repo.get_secret_with_properties("msauth-json")
    """

    def __init__(self, vault_url: str, client: Optional[SecretClient] = None):
        """
        Args:
            vault_url: Key Vault URI
            client: Optional pre-built SecretClient (tests)
        """
        self.vault_url = vault_url
        try:
            self.client = client or SecretClient(vault_url=vault_url, credential=get_azure_credential())
        except Exception as e:
            logger.error(f"❌ Failed to initialize VaultRepository: {e}")
            raise VaultAccessError(f"Vault client initialization failed: {e}")

    def get_secret(self, secret_name: str) -> str:
        """
        Retrieve secret value from Azure Key Vault.

        Raises:
            VaultAccessError: If secret cannot be retrieved or is empty
        """
        return self.get_secret_with_properties(secret_name)['value']

    def get_secret_with_properties(self, secret_name: str) -> Dict[str, Any]:
        """
        Retrieve a secret plus version metadata.

        Returns:
            {'value', 'version', 'updated_on'}

        Raises:
            VaultAccessError: If secret cannot be retrieved or is empty
        """
        logger.debug(f"🔐 Retrieving secret: {secret_name}")

        try:
            secret = self.client.get_secret(secret_name)
        except AzureError as e:
            error_msg = f"Failed to retrieve secret '{secret_name}' from vault '{self.vault_url}': {e}"
            logger.error(f"❌ {error_msg}")
            raise VaultAccessError(error_msg)

        if not secret.value:
            raise VaultAccessError(f"Secret '{secret_name}' is empty or null")

        updated_on = secret.properties.updated_on if secret.properties else None
        logger.info(f"✅ Successfully retrieved secret: {secret_name}")
        return {
            'value': secret.value,
            'version': secret.properties.version if secret.properties else None,
            'updated_on': updated_on.isoformat() if updated_on else None,
        }


__all__ = [
    'VaultRepository',
    'VaultAccessError'
]
