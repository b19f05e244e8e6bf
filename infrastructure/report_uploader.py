# ============================================================================
# REPORT UPLOADER
# ============================================================================
# STATUS: Infrastructure - Upload automation HTML reports to blob storage
# DEPENDENCIES: infrastructure.blob, config.storage_config, util_logger
# ============================================================================
"""
Report Uploader.

Copies a finished report directory (index.html plus screenshots and step
logs) to the reports container under reports/<runId>/ so the run status
can link to it after the Function instance is recycled.

Upload is on by default only inside Azure (WEBSITE_INSTANCE_ID); locally
the report stays on disk unless REPORTS_UPLOAD_ENABLED is set. Skips are
reported as data, never raised.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from config import StorageConfig, RuntimeConfig
from config.defaults import ReportDefaults
from util_logger import LoggerFactory, ComponentType
from .blob import IBlobRepository

logger = LoggerFactory.create_logger(ComponentType.REPOSITORY, "ReportUploader")


CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".map": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".txt": "text/plain",
    ".log": "text/plain",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".webmanifest": "application/manifest+json",
}


def guess_content_type(path: Union[str, Path]) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")


def should_upload(storage: StorageConfig, runtime: RuntimeConfig) -> bool:
    """Explicit REPORTS_UPLOAD_ENABLED wins; otherwise upload only in Azure."""
    if storage.reports_upload_enabled is None:
        return runtime.is_azure
    return storage.reports_upload_enabled


class ReportUploader:
    """Uploads a report directory to the reports container."""

    def __init__(self, blob_repo: IBlobRepository, storage: StorageConfig, runtime: RuntimeConfig):
        self.blob_repo = blob_repo
        self.storage = storage
        self.runtime = runtime

    def upload(self, run_id: str, report_dir: Union[str, Path, None],
               prefix: Optional[str] = None) -> Dict[str, Any]:
        """
        Upload every file under report_dir.

        Args:
            run_id: Run the report belongs to (default prefix reports/<runId>)
            report_dir: Directory holding index.html
            prefix: Explicit blob prefix (overrides REPORTS_BLOB_PREFIX)

        Returns:
            Summary dict; ok=False with skipped/reason when nothing was uploaded
        """
        if not should_upload(self.storage, self.runtime):
            return {'ok': False, 'skipped': True, 'reason': 'report upload disabled'}

        if not report_dir:
            return {'ok': False, 'skipped': True, 'reason': 'no report directory'}

        root = Path(report_dir)
        index_path = root / ReportDefaults.INDEX_FILE
        if not root.is_dir() or not index_path.is_file():
            return {
                'ok': False,
                'skipped': True,
                'reason': 'report folder missing',
                'reportDir': str(root),
                'indexExists': index_path.is_file(),
            }

        container = self.storage.reports_container
        self.blob_repo.ensure_container(container)

        public_access = self.storage.reports_public_access
        public_access_set = None
        public_access_error = None
        if public_access:
            try:
                self.blob_repo.set_public_access(container, public_access)
                public_access_set = public_access
            except Exception as e:
                # Storage account may disallow anonymous access; the upload still proceeds
                public_access_set = False
                public_access_error = str(e)
                logger.warning(f"⚠️ Could not set public access on {container}: {e}")

        report_prefix = (prefix or self.storage.reports_prefix or f"{ReportDefaults.PREFIX_ROOT}/{run_id}").strip("/")

        file_count = 0
        total_bytes = 0
        for file_path in sorted(p for p in root.rglob("*") if p.is_file()):
            blob_name = f"{report_prefix}/{file_path.relative_to(root).as_posix()}"
            total_bytes += file_path.stat().st_size
            with open(file_path, "rb") as handle:
                self.blob_repo.write_blob(
                    container,
                    blob_name,
                    handle,
                    overwrite=True,
                    content_type=guess_content_type(file_path),
                )
            file_count += 1

        index_blob_name = f"{report_prefix}/{ReportDefaults.INDEX_FILE}"
        logger.info(f"📤 Uploaded report for run {run_id}: {file_count} files, {total_bytes} bytes")

        return {
            'ok': True,
            'container': container,
            'prefix': report_prefix,
            'indexBlobName': index_blob_name,
            'indexUrl': self.blob_repo.blob_url(container, index_blob_name),
            'fileCount': file_count,
            'totalBytes': total_bytes,
            'reportDir': str(root),
            'publicAccessRequested': public_access,
            'publicAccessSet': public_access_set,
            'publicAccessError': public_access_error,
        }


__all__ = ['ReportUploader', 'guess_content_type', 'should_upload']
