# ============================================================================
# URL DOWNLOADER
# ============================================================================
# STATUS: Infrastructure - HTTP download for MSAuth.json via direct URL
# DEPENDENCIES: httpx, config.auth_config, util_logger
# ============================================================================
"""
URL Downloader.

Downloads a file from a public or SAS URL straight to disk. The URL usually
carries a SAS token, so it is never logged or embedded in error messages
verbatim: only scheme, host and path appear.

Usage:
    from infrastructure.http_download import download_to_file

    meta = download_to_file(url, "/tmp/MSAuth.json")
    meta["etag"], meta["last_modified"], meta["content_length"]
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import httpx

from config.auth_config import safe_url
from config.defaults import AuthStateDefaults
from util_logger import LoggerFactory, ComponentType
from .local_files import temp_path_for, atomic_replace

logger = LoggerFactory.create_logger(ComponentType.ADAPTER, "UrlDownloader")


class DownloadError(Exception):
    """Download failed (transport error, non-2xx status, too many redirects)."""
    pass


def download_to_file(
    url: str,
    dest: Union[str, Path],
    max_redirects: int = AuthStateDefaults.URL_MAX_REDIRECTS,
    timeout: float = AuthStateDefaults.URL_TIMEOUT_SECONDS,
    client: Optional[httpx.Client] = None,
) -> Dict[str, Any]:
    """
    Stream url into dest, replacing it atomically.

    Args:
        url: Source URL (SAS allowed)
        dest: Target file path; parent directories are created
        max_redirects: Redirect hops followed before failing
        timeout: Per-request timeout in seconds
        client: Optional httpx.Client (tests inject a MockTransport client)

    Returns:
        {'etag', 'last_modified', 'content_length', 'bytes'}

    Raises:
        DownloadError: On any failure; dest is left untouched
    """
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    temp_path = temp_path_for(dest)
    log_url = safe_url(url)

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=timeout, follow_redirects=True, max_redirects=max_redirects)

    try:
        logger.info(f"⬇️ Downloading {log_url}")
        written = 0
        with client.stream("GET", url) as response:
            if response.status_code < 200 or response.status_code >= 300:
                raise DownloadError(f"Failed to download {log_url}: HTTP {response.status_code}")

            with open(temp_path, "wb") as handle:
                for chunk in response.iter_bytes():
                    handle.write(chunk)
                    written += len(chunk)

            headers = response.headers
            content_length = headers.get("content-length")
            meta = {
                'etag': headers.get("etag"),
                'last_modified': headers.get("last-modified"),
                'content_length': int(content_length) if content_length and content_length.isdigit() else None,
                'bytes': written,
            }

        atomic_replace(temp_path, dest)
        logger.info(f"✅ Downloaded {written} bytes from {log_url}")
        return meta

    except httpx.TooManyRedirects:
        raise DownloadError(f"Too many redirects downloading {log_url}")
    except httpx.HTTPError as e:
        raise DownloadError(f"Failed to download {log_url}: {type(e).__name__}")
    finally:
        if temp_path.exists():
            temp_path.unlink()
        if own_client:
            client.close()


__all__ = ['download_to_file', 'DownloadError']
