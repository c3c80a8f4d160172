"""
Import job submission.

Packages an import form (entity name plus up to ``max_files`` upload slots)
into one multipart request, creates the job and reports the two-phase
status ("uploading", then "processing") to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Union

from exceptions import ApiError, EvaluationFault, SubmissionError
from progress_model import ImportJob

logger = logging.getLogger(__name__)

STATUS_UPLOADING = "uploading"
STATUS_PROCESSING = "processing"

StatusCallback = Callable[[Optional[str]], None]


@dataclass
class SourceFile:
    """
    One populated upload slot.

    Attributes:
        filename: Name sent with the part
        content: Bytes or a binary file object
        content_type: MIME type of the part
    """
    filename: str
    content: Any
    content_type: str = "application/octet-stream"


@dataclass
class SubmissionFailure:
    """Why a job could not be created; shown to the user once."""
    message: str
    status_code: Optional[int] = None


SubmissionResult = Union[ImportJob, SubmissionFailure]


def populated_slots(source_files: Sequence[Optional[SourceFile]]) -> List[SourceFile]:
    """Return the slots holding a file, in slot order."""
    return [slot for slot in source_files if slot is not None and slot.filename]


def build_file_parts(source_files: Sequence[Optional[SourceFile]], max_files: int) -> list:
    """
    Build the multipart file parts for a submission.

    Parts are numbered by position among the populated slots, so three
    files spread over ten slots become source-file-0, -1 and -2. Empty
    slots produce no part at all.

    Raises:
        SubmissionError: If more than max_files slots hold a file
    """
    files = populated_slots(source_files)
    if len(files) > max_files:
        raise SubmissionError(
            f"Too many source files: at most {max_files} can be imported at once",
            details={'given': len(files)}
        )
    return [
        (f"source-file-{index}", (slot.filename, slot.content, slot.content_type))
        for index, slot in enumerate(files)
    ]


class JobSubmitter:
    """
    Creates import jobs through the import API.

    Failures are returned, never raised, and are neither alerted nor
    retried here; the caller reports them once.
    """

    def __init__(
        self,
        api_client,
        max_files: int = 10,
        status_callback: Optional[StatusCallback] = None
    ):
        """
        Initialize the submitter.

        Args:
            api_client: ImportApiClient (or anything with create_import_async)
            max_files: Number of upload slots
            status_callback: Receives "uploading", "processing" or None
        """
        self.api_client = api_client
        self.max_files = max_files
        self.status_callback = status_callback

    def _set_status(self, status: Optional[str]) -> None:
        if self.status_callback is not None:
            self.status_callback(status)

    async def submit(
        self,
        entity_name: str,
        source_files: Sequence[Optional[SourceFile]],
        csrf_token: Optional[str]
    ) -> SubmissionResult:
        """
        Submit an import and return the created job.

        Args:
            entity_name: Target data scope
            source_files: Upload slots; None marks an empty slot
            csrf_token: Anti-forgery token, sent as a request header

        Returns:
            ImportJob on success, SubmissionFailure otherwise
        """
        try:
            parts = build_file_parts(source_files, self.max_files)
        except SubmissionError as e:
            logger.warning(f"Submission rejected before upload: {e}")
            return SubmissionFailure(e.message)

        filenames = [name for _, (name, _, _) in parts]
        logger.info(f"Submitting import for '{entity_name}' with {len(parts)} file(s)")
        self._set_status(STATUS_UPLOADING)

        try:
            body = await self.api_client.create_import_async(entity_name, parts, csrf_token)
            job = ImportJob.from_response(body, entity_name=entity_name, source_files=filenames)
        except ApiError as e:
            logger.error(f"Import submission failed: {e.status_text}")
            self._set_status(None)
            return SubmissionFailure(e.status_text, status_code=e.status_code)
        except EvaluationFault as e:
            logger.error(f"Import submission returned an unusable body: {e}")
            self._set_status(None)
            return SubmissionFailure(e.message)

        logger.info(f"Created import job {job.id}")
        self._set_status(STATUS_PROCESSING)
        return job
