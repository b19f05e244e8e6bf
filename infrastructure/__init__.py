"""
Infrastructure Package - Lazy Loading Implementation.

Provides the Azure adapters with lazy loading so that importing
function_app.py does not touch app settings or credentials.

The Azure Functions host imports function_app.py during cold start, before
managed identity tokens are guaranteed and sometimes before app settings
are final. Repositories therefore resolve their configuration when first
used by a trigger, not at import time.

How it works:
    - __getattr__ intercepts access to the exported names
    - The defining module is imported on first access
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .blob import BlobRepository as _BlobRepository
    from .blob import IBlobRepository as _IBlobRepository
    from .vault import VaultRepository as _VaultRepository
    from .vault import VaultAccessError as _VaultAccessError
    from .run_status import RunStatusRepository as _RunStatusRepository
    from .report_uploader import ReportUploader as _ReportUploader
    from .http_download import download_to_file as _download_to_file
    from .http_download import DownloadError as _DownloadError


_LAZY_IMPORTS = {
    'BlobRepository': '.blob',
    'IBlobRepository': '.blob',
    'VaultRepository': '.vault',
    'VaultAccessError': '.vault',
    'RunStatusRepository': '.run_status',
    'ReportUploader': '.report_uploader',
    'download_to_file': '.http_download',
    'DownloadError': '.http_download',
}


def __getattr__(name: str):
    """Lazy import infrastructure classes on first access."""
    if name in _LAZY_IMPORTS:
        from importlib import import_module
        module = import_module(_LAZY_IMPORTS[name], package='infrastructure')
        return getattr(module, name)
    raise AttributeError(f"module 'infrastructure' has no attribute '{name}'")


__all__ = list(_LAZY_IMPORTS.keys())
