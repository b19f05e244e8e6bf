"""
Azure Authentication Module.

Managed identity / developer credentials for every Azure call the app
makes outside connection-string auth (Key Vault, blob account URL,
Playwright Workspaces).
"""

from .credential import get_azure_credential, get_access_token

__all__ = [
    "get_azure_credential",
    "get_access_token",
]
