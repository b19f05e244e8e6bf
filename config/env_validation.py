# ============================================================================
# ENVIRONMENT VARIABLE VALIDATION
# ============================================================================
# STATUS: Configuration - Startup validation with regex patterns
# PURPOSE: Validate app settings at startup so typos surface in the first log lines
# ============================================================================
"""
Environment Variable Validation Module.

Validates app settings at startup using regex patterns to catch
configuration errors EARLY with clear, actionable error messages.

Nothing here is required: every source of MSAuth.json is optional and the
Function App runs (and reports 412) without them. Validation therefore only
checks the FORMAT of values that are set, and warns about defaults.

Usage:
    from config.env_validation import validate_environment

    errors = validate_environment()
    for error in errors:
        print(f"{error.var_name}: {error.message}")

Exports:
    ENV_VAR_RULES: Dict of all validation rules
    ValidationError: Dataclass for validation errors
    validate_environment: Main validation function
    validate_single_var: Validate one variable
    log_validation_results: Log errors and warnings at startup
"""

import os
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Any


# ============================================================================
# VALIDATION ERROR
# ============================================================================

@dataclass
class ValidationError:
    """Result of a failed environment variable validation."""
    var_name: str
    message: str
    current_value: Optional[str]
    expected_pattern: str
    fix_suggestion: str
    severity: str = "error"  # error, warning

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for JSON serialization."""
        return {
            "var_name": self.var_name,
            "message": self.message,
            "current_value": self._mask_sensitive(self.current_value),
            "expected_pattern": self.expected_pattern,
            "fix_suggestion": self.fix_suggestion,
            "severity": self.severity,
        }

    def _mask_sensitive(self, value: Optional[str]) -> Optional[str]:
        """Mask values that can carry credentials (SAS URLs, connection strings, tokens)."""
        if value is None:
            return None
        sensitive_keywords = ["secret", "token", "connection", "url"]
        var_lower = self.var_name.lower()
        if any(kw in var_lower for kw in sensitive_keywords) and "?" in value:
            return value.split("?", 1)[0] + "?***MASKED***"
        if "connection" in var_lower or "token" in var_lower:
            return "***MASKED***"
        if len(value) > 30:
            return f"{value[:20]}...({len(value)} chars)"
        return value


# ============================================================================
# VALIDATION RULE DEFINITION
# ============================================================================

@dataclass
class EnvVarRule:
    """
    Validation rule for an environment variable.

    Attributes:
        pattern: Compiled regex pattern for validation
        pattern_description: Human-readable description of expected format
        required: Whether this variable must be set
        fix_suggestion: How to fix if validation fails
        example: Example valid value
        default_value: Default value used if not set (for warning messages)
        warn_on_default: Emit warning when using default value
    """
    pattern: Pattern
    pattern_description: str
    required: bool
    fix_suggestion: str
    example: str
    default_value: Optional[str] = None
    warn_on_default: bool = False


# ============================================================================
# VALIDATION RULES - Single source of truth for setting formats
# ============================================================================

_HTTPS_URL = re.compile(r"^https://[a-z0-9][a-z0-9.-]+\.[a-z]{2,}.*$", re.IGNORECASE)
_HTTP_URL = re.compile(r"^https?://[a-z0-9][a-z0-9.-]*(:\d+)?(/.*)?$", re.IGNORECASE)
_KEY_VAULT_URL = re.compile(r"^https://[a-z0-9-]{3,24}\.vault\.[a-z0-9.-]+/?$", re.IGNORECASE)
_BLOB_ACCOUNT_URL = re.compile(r"^https://[a-z0-9]{3,24}\.blob\.[a-z0-9.-]+/?$", re.IGNORECASE)
_WSS_URL = re.compile(r"^wss://[a-z0-9][a-z0-9.-]+\.[a-z]{2,}/.*$", re.IGNORECASE)
_CONTAINER_NAME = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")
_QUEUE_NAME = re.compile(r"^[a-z0-9](?!.*--)[a-z0-9-]{1,61}[a-z0-9]$")
_SECRET_NAME = re.compile(r"^[a-zA-Z0-9-]{1,127}$")
_POSITIVE_INT = re.compile(r"^[1-9][0-9]*$")
_PORT = re.compile(r"^[1-9][0-9]{0,4}$")
_BROWSER = re.compile(r"^(edge|msedge|chrome|chromium|chrome-beta|msedge-beta|msedge-dev)$", re.IGNORECASE)
_PUBLIC_ACCESS = re.compile(r"^(blob|container|public|true|1|0|false|none)$", re.IGNORECASE)
_AUTH_MODE = re.compile(r"^(msauth|manual)$", re.IGNORECASE)


ENV_VAR_RULES: Dict[str, EnvVarRule] = {
    "KEYVAULT_URL": EnvVarRule(
        pattern=_KEY_VAULT_URL,
        pattern_description="Key Vault URI",
        required=False,
        fix_suggestion="Use the vault URI from the Key Vault overview blade",
        example="https://bridge-kv.vault.azure.net/",
    ),
    "MSAUTH_SECRET_NAME": EnvVarRule(
        pattern=_SECRET_NAME,
        pattern_description="Key Vault secret name (alphanumeric and dashes)",
        required=False,
        fix_suggestion="Name of the secret holding MSAuth.json",
        example="msauth-json",
    ),
    "MSAUTH_BLOB_URL": EnvVarRule(
        pattern=_HTTPS_URL,
        pattern_description="HTTPS URL (SAS query string allowed)",
        required=False,
        fix_suggestion="Use a blob URL with a read SAS token",
        example="https://account.blob.core.windows.net/playwright/MSAuth.json?sv=...",
    ),
    "MSAUTH_BLOB_ACCOUNT_URL": EnvVarRule(
        pattern=_BLOB_ACCOUNT_URL,
        pattern_description="Storage account blob endpoint",
        required=False,
        fix_suggestion="Use the blob service endpoint of the storage account",
        example="https://account.blob.core.windows.net",
    ),
    "MSAUTH_BLOB_CONTAINER": EnvVarRule(
        pattern=_CONTAINER_NAME,
        pattern_description="Blob container name (3-63 lowercase letters, digits, dashes)",
        required=False,
        fix_suggestion="Use a valid container name",
        example="playwright",
        default_value="playwright",
    ),
    "RUNS_BLOB_CONTAINER": EnvVarRule(
        pattern=_CONTAINER_NAME,
        pattern_description="Blob container name (3-63 lowercase letters, digits, dashes)",
        required=False,
        fix_suggestion="Use a valid container name",
        example="playwright-runs",
        default_value="playwright-runs",
        warn_on_default=True,
    ),
    "RUN_QUEUE_NAME": EnvVarRule(
        pattern=_QUEUE_NAME,
        pattern_description="Storage queue name (3-63 lowercase letters, digits, dashes)",
        required=False,
        fix_suggestion="Use a valid queue name",
        example="create-bridge-runs",
        default_value="create-bridge-runs",
        warn_on_default=True,
    ),
    "REPORTS_BLOB_CONTAINER": EnvVarRule(
        pattern=_CONTAINER_NAME,
        pattern_description="Blob container name (3-63 lowercase letters, digits, dashes)",
        required=False,
        fix_suggestion="Use a valid container name",
        example="playwright-reports",
        default_value="playwright-reports",
    ),
    "REPORTS_PUBLIC_ACCESS": EnvVarRule(
        pattern=_PUBLIC_ACCESS,
        pattern_description="blob, container, or a true/false switch",
        required=False,
        fix_suggestion="Set blob for per-file anonymous reads",
        example="blob",
    ),
    "PLAYWRIGHT_SERVICE_URL": EnvVarRule(
        pattern=_WSS_URL,
        pattern_description="Playwright Workspaces browsers endpoint (wss://)",
        required=False,
        fix_suggestion="Copy the browser endpoint from the Workspaces portal",
        example="wss://eastus.api.playwright.microsoft.com/accounts/<id>/browsers",
    ),
    "BROWSER": EnvVarRule(
        pattern=_BROWSER,
        pattern_description="edge, chrome or a Chromium channel",
        required=False,
        fix_suggestion="Use edge (default) or chrome",
        example="edge",
        default_value="edge",
    ),
    "AUTH_MODE": EnvVarRule(
        pattern=_AUTH_MODE,
        pattern_description="msauth or manual",
        required=False,
        fix_suggestion="Use msauth for unattended runs",
        example="msauth",
    ),
    "FUNCTION_TIMEOUT_MS": EnvVarRule(
        pattern=_POSITIVE_INT,
        pattern_description="Positive integer (milliseconds)",
        required=False,
        fix_suggestion="Milliseconds for synchronous runs",
        example="1200000",
    ),
    "FUNCTION_TIMEOUT_MS_ASYNC": EnvVarRule(
        pattern=_POSITIVE_INT,
        pattern_description="Positive integer (milliseconds)",
        required=False,
        fix_suggestion="Milliseconds for queued runs; keep under the host functionTimeout",
        example="540000",
    ),
    "CDP_PORT": EnvVarRule(
        pattern=_PORT,
        pattern_description="TCP port",
        required=False,
        fix_suggestion="Remote debugging port of the running browser",
        example="9222",
    ),
    "CDP_URL": EnvVarRule(
        pattern=_HTTP_URL,
        pattern_description="http(s) URL of the DevTools endpoint",
        required=False,
        fix_suggestion="Use the browser's remote debugging URL",
        example="http://127.0.0.1:9222",
    ),
    "CREATE_BRIDGE_BASE_URL": EnvVarRule(
        pattern=_HTTP_URL,
        pattern_description="http(s) URL",
        required=False,
        fix_suggestion="Public base URL of the Function App",
        example="https://bridge-func.azurewebsites.net",
    ),
}


# ============================================================================
# VALIDATION FUNCTIONS
# ============================================================================

def validate_single_var(
    var_name: str,
    rule: EnvVarRule,
    include_warnings: bool = True
) -> Optional[ValidationError]:
    """
    Validate a single environment variable against its rule.

    Returns:
        ValidationError if validation fails or warning if using default, None if passes
    """
    value = os.environ.get(var_name)

    if rule.required and not value:
        return ValidationError(
            var_name=var_name,
            message="Required environment variable not set",
            current_value=value,
            expected_pattern=rule.pattern_description,
            fix_suggestion=f"{rule.fix_suggestion}. Example: {rule.example}",
            severity="error",
        )

    if not value:
        if include_warnings and rule.warn_on_default and rule.default_value is not None:
            return ValidationError(
                var_name=var_name,
                message="Not set, using default value",
                current_value=None,
                expected_pattern=f"Default: {rule.default_value}",
                fix_suggestion=f"Set explicitly or accept default. {rule.fix_suggestion}",
                severity="warning",
            )
        return None

    if not rule.pattern.match(value.strip()):
        return ValidationError(
            var_name=var_name,
            message="Invalid format",
            current_value=value,
            expected_pattern=rule.pattern_description,
            fix_suggestion=f"{rule.fix_suggestion}. Example: {rule.example}",
            severity="error",
        )

    return None


def validate_environment(
    rules: Optional[Dict[str, EnvVarRule]] = None,
    include_warnings: bool = True
) -> List[ValidationError]:
    """Validate all environment variables against their rules."""
    if rules is None:
        rules = ENV_VAR_RULES

    results = []
    for var_name, rule in rules.items():
        result = validate_single_var(var_name, rule, include_warnings=include_warnings)
        if result:
            results.append(result)

    return results


def log_validation_results(logger=None) -> bool:
    """
    Log validation results at appropriate levels.

    Invalid formats are logged at ERROR level but do not stop the host:
    the endpoints report the consequences (412/500) per request.

    Returns:
        True if no errors, False if there are errors
    """
    all_results = validate_environment(include_warnings=True)

    errors = [r for r in all_results if r.severity == "error"]
    warnings = [r for r in all_results if r.severity == "warning"]

    def _log(level: str, msg: str):
        if logger:
            getattr(logger, level.lower())(msg)
        else:
            print(f"[{level.upper()}] {msg}")

    for error in errors:
        _log("error", f"ENV VAR ERROR: {error.var_name} - {error.message}")
        _log("error", f"  Expected: {error.expected_pattern}")
        _log("error", f"  Fix: {error.fix_suggestion}")

    if warnings:
        _log("warning", f"ENV VARS: {len(warnings)} optional variables using defaults:")
        for warning in warnings:
            default_val = warning.expected_pattern.replace("Default: ", "")
            _log("warning", f"  {warning.var_name} → {default_val}")

    if errors:
        _log("error", f"❌ {len(errors)} environment variable errors")
        return False
    _log("info", "✅ Environment validation passed")
    return True


__all__ = [
    "ENV_VAR_RULES",
    "EnvVarRule",
    "ValidationError",
    "validate_environment",
    "validate_single_var",
    "log_validation_results",
]
