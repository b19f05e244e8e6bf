# ============================================================================
# SHARED AZURE CREDENTIAL SINGLETON
# ============================================================================
# STATUS: Infrastructure - Canonical credential provider
# PURPOSE: Cached DefaultAzureCredential singleton, safe to import at boot time
# DEPENDENCIES: azure.identity (no infrastructure dependencies)
# ============================================================================
"""
Shared Azure credential singleton.

Safe to import at boot time: depends only on azure.identity, not on config
or other infrastructure modules. Used by the Key Vault and blob account-URL
auth sources and for Playwright Workspaces bearer tokens.
"""

from azure.identity import DefaultAzureCredential

_credential = None


def get_azure_credential() -> DefaultAzureCredential:
    """Get cached DefaultAzureCredential singleton."""
    global _credential
    if _credential is None:
        _credential = DefaultAzureCredential()
    return _credential


def get_access_token(scope: str) -> str:
    """Bearer token for the given scope from the shared credential."""
    return get_azure_credential().get_token(scope).token


__all__ = ["get_azure_credential", "get_access_token"]
