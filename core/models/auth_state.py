"""
Auth State Models.

Describe a resolved MSAuth.json (Playwright storage state) without ever
holding its contents: where it is, where it came from, and a shape summary
that is safe to return over HTTP.

Exports:
    AuthStateVersion: Download/blob metadata for the resolved file
    AuthStateResolution: Result of the auth resolution chain
    AuthStateSummary: Counts and top-level keys (no cookie values)
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import AuthStateSource


class AuthStateVersion(BaseModel):
    """Version information for the file the chain produced."""

    model_config = ConfigDict(populate_by_name=True)

    downloaded_at: Optional[str] = Field(default=None, alias="downloadedAt")
    blob_last_modified: Optional[str] = Field(default=None, alias="blobLastModified")
    etag: Optional[str] = None
    content_length: Optional[int] = Field(default=None, alias="contentLength")
    refreshed: bool = False


class AuthStateResolution(BaseModel):
    """
    Result of resolving MSAuth.json.

    refreshed is True only when the file was obtained over the network
    during this call.
    """

    model_config = ConfigDict(populate_by_name=True)

    path: str
    source: AuthStateSource
    refreshed: bool = False
    version: AuthStateVersion = Field(default_factory=AuthStateVersion)


class AuthStateSummary(BaseModel):
    """Shape summary of a validated auth-state file."""

    model_config = ConfigDict(populate_by_name=True)

    bytes: int
    cookies_count: Optional[int] = Field(default=None, alias="cookiesCount")
    origins_count: Optional[int] = Field(default=None, alias="originsCount")
    keys_preview: List[str] = Field(default_factory=list, alias="keysPreview")
