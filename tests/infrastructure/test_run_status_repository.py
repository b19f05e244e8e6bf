"""
RunStatusRepository tests against the in-memory blob store.
"""

import pytest

from core.models import RunState, RunStatus
from exceptions import ConfigurationError, RunStatusStorageError
from infrastructure.run_status import RunStatusRepository, run_blob_name
from tests.factories.fakes import FakeBlobRepository
from tests.factories.model_factories import make_run_status


class TestRunBlobName:

    def test_layout(self):
        assert run_blob_name("3f2b-11aa_x") == "runs/3f2b-11aa_x.json"

    @pytest.mark.parametrize("run_id", ["", "../secrets", "a/b", "a b", "x" * 129])
    def test_rejects_ids_that_escape_the_prefix(self, run_id):
        with pytest.raises(ValueError):
            run_blob_name(run_id)


class TestRunStatusRepository:

    def test_write_then_read(self):
        blobs = FakeBlobRepository()
        repo = RunStatusRepository(blobs, container="playwright-runs")
        status = RunStatus(**make_run_status())

        repo.write(status)
        loaded = repo.read(status.run_id)

        assert loaded.to_json_dict() == status.to_json_dict()
        data, content_type = blobs.containers["playwright-runs"][f"runs/{status.run_id}.json"]
        assert content_type == "application/json"
        assert b'"runId"' in data

    def test_write_replaces_document(self):
        repo = RunStatusRepository(FakeBlobRepository())
        status = RunStatus(**make_run_status())
        repo.write(status)

        status.state = RunState.RUNNING
        repo.write(status)

        assert repo.read(status.run_id).state == RunState.RUNNING

    def test_missing_run_is_none(self):
        repo = RunStatusRepository(FakeBlobRepository())
        assert repo.read("does-not-exist") is None

    def test_malformed_id_is_value_error(self):
        repo = RunStatusRepository(FakeBlobRepository())
        with pytest.raises(ValueError):
            repo.read("../etc/passwd")

    def test_write_failure_wrapped(self):
        repo = RunStatusRepository(FakeBlobRepository(fail_writes=True))
        with pytest.raises(RunStatusStorageError):
            repo.write(RunStatus(**make_run_status()))

    def test_read_failure_wrapped(self):
        repo = RunStatusRepository(FakeBlobRepository(fail_reads=True))
        with pytest.raises(RunStatusStorageError):
            repo.read("r1")

    def test_corrupt_document_wrapped(self):
        blobs = FakeBlobRepository()
        blobs.write_blob("playwright-runs", "runs/r1.json", b"{not json")
        repo = RunStatusRepository(blobs)
        with pytest.raises(RunStatusStorageError):
            repo.read("r1")

    def test_from_config_requires_storage(self):
        with pytest.raises(ConfigurationError):
            RunStatusRepository.from_config()
