# ============================================================================
# AUTH STATE RESOLUTION
# ============================================================================
# STATUS: Service - MSAuth.json resolution chain
# PURPOSE: Produce a local, validated Playwright storage-state file
# DEPENDENCIES: infrastructure (blob, vault, http_download), config, core.models
# ============================================================================
"""
Auth State Resolution Service.

The automation needs a Playwright storage state (MSAuth.json) on local
disk. It can come from four places, tried as an ordered chain that stops at
the first success:

    Local cache   <function_root>/MSAuth.json, then the write path
    Key Vault     KEYVAULT_URL + MSAUTH_SECRET_NAME
    Blob URL      MSAUTH_BLOB_URL (public or SAS)
    Blob          MSAUTH_BLOB_CONTAINER / MSAUTH_BLOB_NAME

Normal order:   local -> Key Vault -> Blob URL -> Blob
Forced refresh: Blob URL -> Blob -> Key Vault (local cache skipped)

Forced refresh is MSAUTH_FORCE_REFRESH when set; otherwise it is on when
running in the cloud and a blob source is available, because a cached file
on a warm instance may hold a session that was rotated upstream.

When every network source fails:
    non-strict: fall back to a stale local file if one exists, else None
    strict:     raise AuthStateRetrievalError listing each source error
                (None when no source was configured at all)

Configuration is read from the environment on every call.

Exports:
    resolve_auth_state: Run the chain, return AuthStateResolution or None
    ensure_auth_state_file: Path-returning wrapper (optionally with info)
    get_auth_write_path: Where downloaded state is written
    validate_auth_state_file: Shape check returning AuthStateSummary
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from config import AuthStateConfig, RuntimeConfig, safe_url
from config.defaults import AuthStateDefaults
from core.models import (
    AuthStateResolution,
    AuthStateSource,
    AuthStateSummary,
    AuthStateVersion,
)
from exceptions import AuthStateRetrievalError, AuthStateValidationError, ConfigurationError
from infrastructure.blob import BlobRepository
from infrastructure.http_download import download_to_file
from infrastructure.local_files import atomic_write_bytes
from infrastructure.vault import VaultRepository
from util_logger import LoggerFactory, ComponentType

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "AuthStateService")

PathLike = Union[str, Path]
LogFn = Callable[[str], object]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _make_log(log: Optional[LogFn]) -> LogFn:
    if log is None:
        return logger.debug
    return log


# ============================================================================
# PATHS AND VALIDATION
# ============================================================================

def get_auth_write_path(function_root: PathLike, write_path: Optional[PathLike] = None,
                        config: Optional[AuthStateConfig] = None,
                        runtime: Optional[RuntimeConfig] = None) -> Path:
    """
    Resolve where a downloaded MSAuth.json is written.

    Order: explicit argument, MSAUTH_WRITE_PATH, the temp directory under
    run-from-package (wwwroot is read-only there), <function_root>/MSAuth.json.
    """
    if write_path:
        return Path(write_path).resolve()

    config = config or AuthStateConfig.from_environment()
    if config.write_path:
        return Path(config.write_path).resolve()

    runtime = runtime or RuntimeConfig.from_environment()
    if runtime.is_run_from_package:
        return Path(tempfile.gettempdir()) / AuthStateDefaults.FILE_NAME

    return Path(function_root).resolve() / AuthStateDefaults.FILE_NAME


def validate_auth_state_file(path: PathLike) -> AuthStateSummary:
    """
    Check that a file looks like a Playwright storage state.

    Raises:
        AuthStateValidationError: Missing, too small, not a JSON object, or
            neither cookies nor origins is an array
    """
    path = Path(path)
    try:
        raw = path.read_bytes()
    except OSError as e:
        raise AuthStateValidationError(f"cannot read {path}: {e.strerror or e}") from e

    size = len(raw)
    if size < AuthStateDefaults.MIN_BYTES:
        raise AuthStateValidationError(f"file too small ({size} bytes)")

    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise AuthStateValidationError(f"not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise AuthStateValidationError("top-level JSON value is not an object")

    cookies = data.get("cookies")
    origins = data.get("origins")
    if not isinstance(cookies, list) and not isinstance(origins, list):
        raise AuthStateValidationError("neither 'cookies' nor 'origins' is an array")

    return AuthStateSummary(
        bytes=size,
        cookies_count=len(cookies) if isinstance(cookies, list) else None,
        origins_count=len(origins) if isinstance(origins, list) else None,
        keys_preview=list(data.keys())[:AuthStateDefaults.KEYS_PREVIEW_LIMIT],
    )


def _existing_local_file(function_root: Path, write_path: Path) -> Optional[Path]:
    default_path = function_root / AuthStateDefaults.FILE_NAME
    if default_path.is_file():
        return default_path
    if write_path.is_file():
        return write_path
    return None


# ============================================================================
# NETWORK SOURCES
# ============================================================================

def _blob_repository(config: AuthStateConfig) -> Optional[BlobRepository]:
    """Connection string (dedicated, then AzureWebJobsStorage), then account URL."""
    if config.blob_connection_string:
        return BlobRepository.from_connection_string(config.blob_connection_string)
    if config.blob_account_url:
        return BlobRepository.from_account_url(config.blob_account_url)
    return None


def _fetch_from_key_vault(config: AuthStateConfig, target: Path, log: LogFn) -> AuthStateVersion:
    log("KeyVault: configured; attempting download")
    secret = VaultRepository(config.keyvault_url).get_secret_with_properties(config.secret_name)
    data = secret['value'].encode("utf-8")
    atomic_write_bytes(target, data)
    log(f"KeyVault: wrote auth to {target}")
    return AuthStateVersion(
        downloaded_at=_now_iso(),
        blob_last_modified=secret.get('updated_on'),
        etag=secret.get('version'),
        content_length=len(data),
        refreshed=True,
    )


def _fetch_from_blob_url(config: AuthStateConfig, target: Path, log: LogFn) -> AuthStateVersion:
    log(f"BlobUrl: downloading from {safe_url(config.blob_url)} -> {target}")
    meta = download_to_file(config.blob_url, target)
    log(f"BlobUrl: downloaded bytes={meta['bytes']}")
    return AuthStateVersion(
        downloaded_at=_now_iso(),
        blob_last_modified=meta.get('last_modified'),
        etag=meta.get('etag'),
        content_length=meta.get('content_length') or meta['bytes'],
        refreshed=True,
    )


def _fetch_from_blob(config: AuthStateConfig, target: Path, log: LogFn) -> AuthStateVersion:
    container = config.blob_container
    blob_name = config.blob_name
    log(
        f"Blob: configured container={container} blob={blob_name} "
        f"(explicitConn={bool(config.blob_connection)} "
        f"AzureWebJobsStorage={bool(config.webjobs_storage)} "
        f"accountUrl={bool(config.blob_account_url)})"
    )

    repo = _blob_repository(config)
    if repo is None:
        raise ConfigurationError("no storage connection or account URL configured")

    if not repo.container_exists(container):
        raise FileNotFoundError(f"MSAuth blob container not found: {container}")
    if not repo.blob_exists(container, blob_name):
        raise FileNotFoundError(f"MSAuth blob not found: {container}/{blob_name}")

    data, props = repo.download_blob(container, blob_name)
    atomic_write_bytes(target, data)
    log(f"Blob: wrote auth to {target}")
    return AuthStateVersion(
        downloaded_at=_now_iso(),
        blob_last_modified=props.get('last_modified'),
        etag=props.get('etag'),
        content_length=props.get('size') or len(data),
        refreshed=True,
    )


_SOURCE_LABELS = {
    AuthStateSource.KEY_VAULT: "KeyVault",
    AuthStateSource.BLOB_URL: "BlobUrl",
    AuthStateSource.BLOB: "Blob",
}

_FETCHERS = {
    AuthStateSource.KEY_VAULT: _fetch_from_key_vault,
    AuthStateSource.BLOB_URL: _fetch_from_blob_url,
    AuthStateSource.BLOB: _fetch_from_blob,
}


def is_forced_refresh(config: AuthStateConfig, runtime: RuntimeConfig,
                      force_refresh: Optional[bool] = None) -> bool:
    """Argument, then MSAUTH_FORCE_REFRESH, then cloud runtime with a blob source."""
    if force_refresh is not None:
        return force_refresh
    if config.force_refresh is not None:
        return config.force_refresh
    return runtime.is_cloud and (config.blob_url_configured or config.blob_client_possible)


def source_order(config: AuthStateConfig, forced: bool) -> List[AuthStateSource]:
    """Network sources to try, restricted to the ones that can be attempted."""
    if forced:
        order = [AuthStateSource.BLOB_URL, AuthStateSource.BLOB, AuthStateSource.KEY_VAULT]
    else:
        order = [AuthStateSource.KEY_VAULT, AuthStateSource.BLOB_URL, AuthStateSource.BLOB]

    available = {
        AuthStateSource.KEY_VAULT: config.key_vault_configured,
        AuthStateSource.BLOB_URL: config.blob_url_configured,
        AuthStateSource.BLOB: config.blob_client_possible,
    }
    return [source for source in order if available[source]]


# ============================================================================
# RESOLUTION CHAIN
# ============================================================================

def resolve_auth_state(
    function_root: PathLike,
    *,
    strict: bool = False,
    write_path: Optional[PathLike] = None,
    log: Optional[LogFn] = None,
    force_refresh: Optional[bool] = None,
) -> Optional[AuthStateResolution]:
    """
    Resolve MSAuth.json to a local file.

    Args:
        function_root: Function App root (where a bundled MSAuth.json lives)
        strict: Raise when configured sources all fail instead of returning None
        write_path: Override for where downloads are written
        log: Callable receiving one progress line per step
        force_refresh: Override for the forced-refresh decision

    Returns:
        AuthStateResolution, or None when no file could be produced

    Raises:
        AuthStateRetrievalError: strict mode and every configured source failed
    """
    emit = _make_log(log)
    config = AuthStateConfig.from_environment()
    runtime = RuntimeConfig.from_environment()

    root = Path(function_root).resolve()
    target = get_auth_write_path(root, write_path, config=config, runtime=runtime)
    forced = is_forced_refresh(config, runtime, force_refresh)

    if not forced:
        local = _existing_local_file(root, target)
        if local is not None:
            emit(f"Local: found {local}")
            return AuthStateResolution(path=str(local), source=AuthStateSource.LOCAL)
    else:
        emit("Refresh: forced; skipping local cache")

    errors: List[str] = []
    for source in source_order(config, forced):
        label = _SOURCE_LABELS[source]
        try:
            version = _FETCHERS[source](config, target, emit)
        except Exception as e:
            message = f"{label}: {e}"
            errors.append(message)
            emit(message)
            continue

        logger.info(f"🔑 MSAuth.json resolved from {label} -> {target}")
        return AuthStateResolution(path=str(target), source=source, refreshed=True, version=version)

    if not strict:
        stale = _existing_local_file(root, target)
        if stale is not None:
            emit(f"Local: network refresh failed; using cached {stale}")
            return AuthStateResolution(path=str(stale), source=AuthStateSource.LOCAL)
        return None

    if config.any_configured and errors:
        logger.error(f"❌ MSAuth.json retrieval failed: {' | '.join(errors)}")
        raise AuthStateRetrievalError(errors)

    return None


def ensure_auth_state_file(
    function_root: PathLike,
    *,
    strict: bool = False,
    return_info: bool = False,
    write_path: Optional[PathLike] = None,
    log: Optional[LogFn] = None,
    force_refresh: Optional[bool] = None,
) -> Union[None, str, AuthStateResolution]:
    """
    Path-returning form of resolve_auth_state.

    Returns the path as a string, or the full AuthStateResolution when
    return_info is True. None when nothing could be resolved.
    """
    resolution = resolve_auth_state(
        function_root,
        strict=strict,
        write_path=write_path,
        log=log,
        force_refresh=force_refresh,
    )
    if resolution is None:
        return None
    return resolution if return_info else resolution.path


def describe_auth_sources(function_root: PathLike) -> Tuple[dict, dict]:
    """
    Source configuration for diagnostics: (configured flags, sanitized settings).

    Never includes connection strings or SAS query strings.
    """
    config = AuthStateConfig.from_environment()
    runtime = RuntimeConfig.from_environment()
    target = get_auth_write_path(function_root, config=config, runtime=runtime)

    configured = {
        'keyVault': config.key_vault_configured,
        'blobUrl': config.blob_url_configured,
        'blob': config.blob_configured,
        'blobClientPossible': config.blob_client_possible,
        'any': config.any_configured,
    }
    settings = {
        'keyVaultUrl': safe_url(config.keyvault_url),
        'secretName': config.secret_name,
        'blobUrl': safe_url(config.blob_url),
        'blobAccountUrl': safe_url(config.blob_account_url),
        'blobContainer': config.blob_container,
        'blobName': config.blob_name,
        'writePath': str(target),
        'localPath': str(Path(function_root).resolve() / AuthStateDefaults.FILE_NAME),
        'forceRefresh': is_forced_refresh(config, runtime),
        'runFromPackage': runtime.is_run_from_package,
        'isAzure': runtime.is_azure,
        'hasPlaywrightServiceUrl': bool(runtime.playwright_service_url),
        'webjobsStorage': bool(config.webjobs_storage),
    }
    return configured, settings


__all__ = [
    'resolve_auth_state',
    'ensure_auth_state_file',
    'get_auth_write_path',
    'validate_auth_state_file',
    'describe_auth_sources',
    'is_forced_refresh',
    'source_order',
]
