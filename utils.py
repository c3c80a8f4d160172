"""
Utility helpers for filesystem paths and upload slot preparation.

Centralizes logic for resolving project-relative paths so both the CLI
and the Streamlit page stay in sync.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import List, Optional, Sequence

from exceptions import SubmissionError
from job_submitter import SourceFile

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parent


def get_project_root() -> Path:
    """Return the repository root directory."""
    return _PROJECT_ROOT


def _coerce_path(path_value: str | Path, *, allow_relative: bool = True) -> Path:
    """
    Convert a string/Path into an absolute project-root based Path.

    Args:
        path_value: Candidate filesystem path.
        allow_relative: If False, value must already be absolute.

    Returns:
        Absolute Path instance.
    """
    path = Path(path_value)
    if path.is_absolute() or not allow_relative:
        return path
    return get_project_root() / path


def resolve_log_path(log_path: str) -> Path:
    """
    Convert a log file path to an absolute path under the project root when needed.

    Args:
        log_path: Configured log file path (relative or absolute).

    Returns:
        Absolute Path for logging output.
    """
    resolved = _coerce_path(log_path)
    if resolved.parent != resolved:
        resolved.parent.mkdir(parents=True, exist_ok=True)
    return resolved


def guess_content_type(filename: str) -> str:
    """Return a MIME type for an upload, falling back to a binary stream."""
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def load_source_files(
    paths: Sequence[str | Path],
    max_files: int
) -> List[Optional[SourceFile]]:
    """
    Read local files into upload slots.

    The returned list always has ``max_files`` entries; slots past the
    given paths are left empty (None), mirroring a form with unused file
    inputs.

    Args:
        paths: Files to upload, in slot order.
        max_files: Number of upload slots available.

    Returns:
        List of SourceFile or None, one entry per slot.

    Raises:
        SubmissionError: If there are more paths than slots or a file is missing.
    """
    if len(paths) > max_files:
        raise SubmissionError(
            f"Too many source files: at most {max_files} can be imported at once",
            details={'given': len(paths)}
        )

    slots: List[Optional[SourceFile]] = [None] * max_files
    for index, raw_path in enumerate(paths):
        path = Path(raw_path)
        if not path.is_file():
            raise SubmissionError("Source file not found", details={'path': str(path)})
        slots[index] = SourceFile(
            filename=path.name,
            content=path.read_bytes(),
            content_type=guess_content_type(path.name),
        )
        logger.debug("Loaded %s into upload slot %d", path.name, index)
    return slots
