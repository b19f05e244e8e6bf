"""
Auth State Preflight.

Answers "would a run be able to authenticate right now?" without starting
a browser: reports which MSAuth.json sources are configured, optionally
runs the resolution chain in strict mode, and validates the shape of the
resulting file. Cookie values are never returned.

Exports:
    run_preflight: Execute the check and return a PreflightReport
    PreflightReport: HTTP status plus response body
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from exceptions import AuthStateValidationError
from util_logger import LoggerFactory, ComponentType, StepLog
from .auth_state import describe_auth_sources, ensure_auth_state_file, validate_auth_state_file

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "Preflight")

NOT_CONFIGURED_HINT = "\n".join([
    "Set one of the following:",
    "- MSAUTH_BLOB_URL (public or SAS URL)",
    "- or KEYVAULT_URL + MSAUTH_SECRET_NAME",
    "- or MSAUTH_BLOB_CONTAINER/MSAUTH_BLOB_NAME with storage settings "
    "(MSAUTH_BLOB_CONNECTION or AzureWebJobsStorage or MSAUTH_BLOB_ACCOUNT_URL)",
])


@dataclass
class PreflightReport:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200


def run_preflight(function_root: Path, fetch: bool = True) -> PreflightReport:
    """
    Check MSAuth.json availability.

    Args:
        function_root: Function App root
        fetch: Run the strict resolution chain before validating

    Returns:
        PreflightReport with 200 (valid), 412 (not configured, missing or
        invalid) or 500 (retrieval failed)
    """
    steps = StepLog(logger)
    resolver_logs = []

    def capture(line: str) -> None:
        resolver_logs.append(line)
        steps("msauth", line)

    configured, config = describe_auth_sources(function_root)

    result: Dict[str, Any] = {
        'ok': False,
        'fetched': False,
        'validated': False,
        'authPath': None,
        'authExists': False,
        'bytes': None,
        'json': None,
        'version': None,
    }

    local_path = Path(config['localPath'])
    existed_before = local_path.is_file()
    if existed_before:
        result['authPath'] = str(local_path)
        result['authExists'] = True
        steps("local_found", f"path={local_path}")

    if fetch:
        if not configured['any']:
            steps("not_configured", "no keyvault/blob settings found")
            return PreflightReport(412, {
                'ok': False,
                'error': 'MSAuth retrieval is not configured.',
                'hint': NOT_CONFIGURED_HINT,
                'config': config,
                'configured': configured,
            })

        steps("fetch_start", {"strict": True})
        try:
            resolution = ensure_auth_state_file(function_root, strict=True, return_info=True, log=capture)
        except Exception as e:
            steps("fetch_failed", {"message": str(e)})
            return PreflightReport(500, {
                'ok': False,
                'error': f'Failed to fetch MSAuth.json: {e}',
                'config': config,
                'configured': configured,
                'logs': resolver_logs,
            })

        if resolution is not None:
            result['fetched'] = True
            result['authPath'] = resolution.path
            result['authExists'] = Path(resolution.path).is_file()
            result['source'] = resolution.source.value
            result['version'] = resolution.version.model_dump(by_alias=True)
            steps("fetch_done", f"path={resolution.path} exists={result['authExists']}")

    if not result['authPath'] or not Path(result['authPath']).is_file():
        steps("auth_missing", "MSAuth.json not present")
        return PreflightReport(412, {
            'ok': False,
            'error': 'MSAuth.json is missing (after optional fetch).',
            'doFetch': fetch,
            'existedBefore': existed_before,
            'config': config,
            'configured': configured,
            'logs': resolver_logs,
        })

    try:
        summary = validate_auth_state_file(result['authPath'])
    except AuthStateValidationError as e:
        steps("validate_failed", {"message": str(e)})
        return PreflightReport(412, {
            'ok': False,
            'error': 'MSAuth.json exists but failed validation (invalid JSON or unexpected shape).',
            'details': str(e),
            'authPath': result['authPath'],
            'doFetch': fetch,
            'config': config,
            'configured': configured,
            'logs': resolver_logs,
        })

    result['bytes'] = summary.bytes
    result['json'] = summary.model_dump(by_alias=True, exclude={'bytes'})
    result['validated'] = True
    result['ok'] = True
    steps("validate_ok", {"bytes": summary.bytes, "cookiesCount": summary.cookies_count,
                          "originsCount": summary.origins_count})

    return PreflightReport(200, {
        'ok': True,
        'ts': datetime.now(timezone.utc).isoformat(),
        'doFetch': fetch,
        'config': config,
        'configured': configured,
        'result': result,
        'logs': resolver_logs,
    })


__all__ = ['run_preflight', 'PreflightReport']
