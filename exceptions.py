"""
Custom Exception Hierarchy

Distinguishes between:
1. Contract Violations (programming bugs that need fixing)
2. Business Logic Failures (expected runtime issues)
3. Configuration Errors (deployment is missing required settings)

This separation ensures bugs are found quickly while the system
remains robust to expected failures such as an expired session or an
unreachable storage account.
"""

from typing import Any, Dict, List, Optional


class ContractViolationError(TypeError):
    """
    Raised when component contracts are violated (programming bugs).

    These should NEVER be caught and handled - they indicate bugs
    that need to be fixed in the code.

    Examples:
        - Run status moved from a terminal state back to running
        - Worker handed something other than a RunQueueMessage
    """
    pass


class BusinessLogicError(Exception):
    """
    Base class for expected runtime business logic failures.

    These are normal failures that occur during system operation
    and should be handled gracefully without crashing.
    """
    pass


class AuthStateError(BusinessLogicError):
    """Base class for stored browser session (MSAuth.json) failures."""
    pass


class AuthStateRetrievalError(AuthStateError):
    """
    Every configured auth-state source failed.

    Carries one message per failed source, in the order they were tried.

    Examples:
        - Key Vault secret missing or access denied
        - Blob URL returned 403 (expired SAS)
        - Blob container or blob not found
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("MSAuth.json retrieval failed. " + " | ".join(self.errors))


class AuthStateValidationError(AuthStateError):
    """
    Auth-state file exists but does not look like a storage state.

    Examples:
        - File is not valid JSON
        - Neither cookies nor origins is an array
        - File is suspiciously small
    """
    pass


class AuthStateExpiredError(AuthStateError):
    """The portal showed an interactive login form during an unattended run."""
    pass


class AutomationError(BusinessLogicError):
    """
    A browser step exhausted its fallback selectors or timed out.

    Examples:
        - Search box never appeared
        - No "Create bridge" control in the toolbar or overflow menu
        - Success toast never appeared after Save
    """
    pass


class RunStatusStorageError(BusinessLogicError):
    """Run status document could not be written to or read from blob storage."""
    pass


class PreconditionFailedError(BusinessLogicError):
    """
    Request cannot proceed until something is configured (HTTP 412).

    Examples:
        - No MSAuth.json deployed for the synchronous endpoint
        - PLAYWRIGHT_SERVICE_URL not set for the Workspaces endpoint
        - No auth-state source configured for preflight
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(Exception):
    """
    System configuration error.

    These are typically fatal and indicate misconfiguration
    that prevents the system from operating.

    Examples:
        - AzureWebJobsStorage not set for run status storage
        - Blob container source has no connection string or account URL
    """
    pass
