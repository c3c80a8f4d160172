"""
Unit tests for import job submission.

Tests multipart part construction, the uploading/processing status
sequence and failure reporting.
"""

import pytest
from unittest.mock import AsyncMock, Mock

from api_client import ImportApiClient
from exceptions import ApiError, SubmissionError
from job_submitter import (
    STATUS_PROCESSING,
    STATUS_UPLOADING,
    JobSubmitter,
    SourceFile,
    SubmissionFailure,
    build_file_parts,
)
from progress_model import ImportJob


def _file(name):
    return SourceFile(filename=name, content=f"{name} content".encode(), content_type="text/csv")


@pytest.fixture
def mock_api_client():
    """Create a mock API client whose create call succeeds."""
    client = Mock(spec=ImportApiClient)
    client.create_import_async = AsyncMock(return_value={"import": {"id": 7, "progress": {}}})
    return client


class TestBuildFileParts:
    """Test multipart file part construction."""

    def test_three_of_ten_slots_populated(self):
        """Populated slots are numbered without gaps; empty slots send nothing."""
        slots = [None, _file("a.csv"), None, None, _file("b.csv"), None, None, None, _file("c.csv"), None]
        parts = build_file_parts(slots, max_files=10)

        assert [name for name, _ in parts] == ["source-file-0", "source-file-1", "source-file-2"]
        assert [part[0] for _, part in parts] == ["a.csv", "b.csv", "c.csv"]

    def test_file_without_name_counts_as_empty(self):
        parts = build_file_parts([SourceFile(filename="", content=b""), _file("a.csv")], max_files=10)
        assert len(parts) == 1
        assert parts[0][0] == "source-file-0"

    def test_no_files(self):
        assert build_file_parts([None] * 10, max_files=10) == []

    def test_too_many_slots(self):
        with pytest.raises(SubmissionError):
            build_file_parts([_file(f"{i}.csv") for i in range(11)], max_files=10)

    def test_extra_empty_slots_are_allowed(self):
        slots = [_file("a.csv"), _file("b.csv"), _file("c.csv")] + [None] * 8
        parts = build_file_parts(slots, max_files=10)
        assert [name for name, _ in parts] == ["source-file-0", "source-file-1", "source-file-2"]


class TestJobSubmitter:
    """Test JobSubmitter.submit."""

    @pytest.mark.asyncio
    async def test_successful_submission_returns_job(self, mock_api_client):
        slots = [_file("a.csv"), None, _file("b.csv")] + [None] * 7
        submitter = JobSubmitter(mock_api_client, max_files=10)

        result = await submitter.submit("Personal", slots, "token-123")

        assert isinstance(result, ImportJob)
        assert result.id == 7
        assert result.entity_name == "Personal"
        assert result.source_files == ["a.csv", "b.csv"]
        assert result.progress == {}

        args = mock_api_client.create_import_async.call_args[0]
        assert args[0] == "Personal"
        assert [name for name, _ in args[1]] == ["source-file-0", "source-file-1"]
        assert args[2] == "token-123"

    @pytest.mark.asyncio
    async def test_status_sequence_on_success(self, mock_api_client):
        """Status reads uploading while in flight, then processing."""
        statuses = []
        seen_during_upload = []

        async def create(*args):
            seen_during_upload.append(statuses[-1])
            return {"import": {"id": 7, "progress": {}}}

        mock_api_client.create_import_async.side_effect = create
        submitter = JobSubmitter(mock_api_client, status_callback=statuses.append)

        await submitter.submit("Personal", [_file("a.csv")], None)

        assert seen_during_upload == [STATUS_UPLOADING]
        assert statuses == [STATUS_UPLOADING, STATUS_PROCESSING]

    @pytest.mark.asyncio
    async def test_server_error_returns_failure(self, mock_api_client):
        mock_api_client.create_import_async.side_effect = ApiError("Unprocessable Entity", status_code=422)
        statuses = []
        submitter = JobSubmitter(mock_api_client, status_callback=statuses.append)

        result = await submitter.submit("Personal", [_file("a.csv")], "token")

        assert result == SubmissionFailure("Unprocessable Entity", status_code=422)
        assert statuses == [STATUS_UPLOADING, None]
        # No retry
        assert mock_api_client.create_import_async.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_returns_failure(self, mock_api_client):
        mock_api_client.create_import_async.side_effect = ApiError("Unable to connect to the import service")
        submitter = JobSubmitter(mock_api_client)

        result = await submitter.submit("Personal", [_file("a.csv")], "token")

        assert isinstance(result, SubmissionFailure)
        assert result.message == "Unable to connect to the import service"
        assert result.status_code is None

    @pytest.mark.asyncio
    async def test_response_without_job_id_returns_failure(self, mock_api_client):
        mock_api_client.create_import_async.return_value = {"import": {"progress": {}}}
        submitter = JobSubmitter(mock_api_client)

        result = await submitter.submit("Personal", [_file("a.csv")], "token")

        assert isinstance(result, SubmissionFailure)

    @pytest.mark.asyncio
    async def test_too_many_files_never_uploads(self, mock_api_client):
        statuses = []
        submitter = JobSubmitter(mock_api_client, max_files=2, status_callback=statuses.append)

        result = await submitter.submit("Personal", [_file("a"), _file("b"), _file("c")], "token")

        assert isinstance(result, SubmissionFailure)
        assert "at most 2" in result.message
        mock_api_client.create_import_async.assert_not_called()
        assert statuses == []
