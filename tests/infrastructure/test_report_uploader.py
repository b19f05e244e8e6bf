"""
ReportUploader tests: upload switch, layout and public access handling.
"""

import pytest

from config import RuntimeConfig, StorageConfig
from infrastructure.report_uploader import ReportUploader, guess_content_type, should_upload
from tests.factories.fakes import FakeBlobRepository


@pytest.fixture
def report_dir(tmp_path):
    root = tmp_path / "report"
    (root / "data").mkdir(parents=True)
    (root / "index.html").write_text("<html></html>", encoding="utf-8")
    (root / "data" / "step-1.png").write_bytes(b"\x89PNG....")
    (root / "steps.json").write_text("{}", encoding="utf-8")
    return root


def _uploader(blobs, **storage_overrides):
    storage = StorageConfig(reports_upload_enabled=True, **storage_overrides)
    return ReportUploader(blobs, storage, RuntimeConfig())


class TestShouldUpload:

    @pytest.mark.parametrize("enabled,in_azure,expected", [
        (None, False, False),
        (None, True, True),
        (True, False, True),
        (False, True, False),
    ])
    def test_switch(self, enabled, in_azure, expected):
        storage = StorageConfig(reports_upload_enabled=enabled)
        runtime = RuntimeConfig(website_instance_id="abc" if in_azure else None)
        assert should_upload(storage, runtime) is expected


class TestContentTypes:

    @pytest.mark.parametrize("name,expected", [
        ("index.html", "text/html"),
        ("shot.PNG", "image/png"),
        ("steps.json", "application/json"),
        ("trace.zip", "application/octet-stream"),
    ])
    def test_guess(self, name, expected):
        assert guess_content_type(name) == expected


class TestReportUploader:

    def test_uploads_tree_under_run_prefix(self, report_dir):
        blobs = FakeBlobRepository()
        summary = _uploader(blobs).upload("run-1", report_dir)

        assert summary['ok'] is True
        assert summary['container'] == "playwright-reports"
        assert summary['prefix'] == "reports/run-1"
        assert summary['fileCount'] == 3
        assert summary['indexBlobName'] == "reports/run-1/index.html"
        assert summary['indexUrl'] == "https://fakeaccount.blob.core.windows.net/playwright-reports/reports/run-1/index.html"

        stored = blobs.containers["playwright-reports"]
        assert set(stored) == {
            "reports/run-1/index.html",
            "reports/run-1/data/step-1.png",
            "reports/run-1/steps.json",
        }
        assert stored["reports/run-1/index.html"][1] == "text/html"
        assert stored["reports/run-1/data/step-1.png"][0] == b"\x89PNG...."

    def test_explicit_prefix(self, report_dir):
        blobs = FakeBlobRepository()
        summary = _uploader(blobs, reports_prefix="/latest/").upload("run-1", report_dir)
        assert summary['prefix'] == "latest"
        assert "latest/index.html" in blobs.containers["playwright-reports"]

    def test_disabled_is_skipped(self, report_dir):
        blobs = FakeBlobRepository()
        uploader = ReportUploader(blobs, StorageConfig(), RuntimeConfig())
        summary = uploader.upload("run-1", report_dir)
        assert summary == {'ok': False, 'skipped': True, 'reason': 'report upload disabled'}
        assert blobs.containers == {}

    def test_missing_index_is_skipped(self, tmp_path):
        (tmp_path / "report").mkdir()
        summary = _uploader(FakeBlobRepository()).upload("run-1", tmp_path / "report")
        assert summary['skipped'] is True
        assert summary['reason'] == "report folder missing"
        assert summary['indexExists'] is False

    def test_no_directory_is_skipped(self):
        summary = _uploader(FakeBlobRepository()).upload("run-1", None)
        assert summary['reason'] == "no report directory"

    def test_public_access_applied(self, report_dir):
        blobs = FakeBlobRepository()
        summary = _uploader(blobs, reports_public_access="blob").upload("run-1", report_dir)
        assert summary['publicAccessSet'] == "blob"
        assert blobs.public_access == {"playwright-reports": "blob"}

    def test_public_access_failure_does_not_stop_upload(self, report_dir):
        blobs = FakeBlobRepository(fail_public_access=True)
        summary = _uploader(blobs, reports_public_access="container").upload("run-1", report_dir)
        assert summary['ok'] is True
        assert summary['publicAccessSet'] is False
        assert "not permitted" in summary['publicAccessError']
        assert summary['fileCount'] == 3
