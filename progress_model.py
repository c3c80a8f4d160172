"""
Progress model for server-side import jobs.

An import job reports its progress as a mapping from resource type
("account", "transaction", "budget", ...) to a counter pair::

    {"account": {"total": 5, "imported": 4}, "budget": {"total": 1, "imported": 0}}

The key set is defined by the server and may grow; entries only appear once
the corresponding stage has started. This module normalizes those snapshots
and decides when a job is finished.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from exceptions import EvaluationFault

logger = logging.getLogger(__name__)

# Resource types whose stages must all finish before an import is complete
TRACKED_RESOURCE_TYPES = ("account", "transaction", "budget")


class JobLifecycle(enum.Enum):
    """Lifecycle of an import job as seen by the client."""
    CREATED = "created"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class ResourceProgress:
    """
    One well-formed entry of a progress snapshot.

    Attributes:
        resource_type: Snapshot key, e.g. "transaction"
        total: Number of records the server expects to import
        imported: Number of records imported so far
    """
    resource_type: str
    total: int
    imported: int

    @property
    def is_done(self) -> bool:
        return self.imported == self.total

    @property
    def fraction(self) -> float:
        """Share of the stage that is done, clamped to [0, 1]."""
        if self.total == 0:
            return 1.0
        return max(0.0, min(self.imported / self.total, 1.0))


def _is_count(value: Any) -> bool:
    # bool is an int subclass; a True/False counter is malformed
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def parse_entry(resource_type: str, raw: Any) -> Optional[ResourceProgress]:
    """
    Convert a raw snapshot entry into a ResourceProgress.

    Args:
        resource_type: Snapshot key
        raw: Entry value as received from the server

    Returns:
        ResourceProgress, or None if the entry is malformed
    """
    if not isinstance(raw, Mapping):
        return None
    total = raw.get("total")
    imported = raw.get("imported")
    if not (_is_count(total) and _is_count(imported)):
        return None
    return ResourceProgress(resource_type=str(resource_type), total=total, imported=imported)


def progress_entries(snapshot: Optional[Mapping[str, Any]]) -> List[ResourceProgress]:
    """
    Return every well-formed entry of a snapshot, tracked or not.

    Malformed entries are skipped with a debug log; they never raise.
    """
    if not isinstance(snapshot, Mapping):
        return []
    entries = []
    for key, raw in snapshot.items():
        entry = parse_entry(key, raw)
        if entry is None:
            logger.debug("Skipping malformed progress entry %r: %r", key, raw)
            continue
        entries.append(entry)
    return entries


def is_complete(snapshot: Optional[Mapping[str, Any]]) -> bool:
    """
    Decide whether an import has finished every tracked stage.

    An empty snapshot means the server has not reported any stage yet and
    is never complete. Otherwise every type in TRACKED_RESOURCE_TYPES must
    be present and well-formed with ``imported == total``. Untracked keys
    are ignored. Never raises: anything unexpected reads as "not complete".

    Args:
        snapshot: Progress mapping from the status endpoint

    Returns:
        True if the import is complete
    """
    try:
        if not isinstance(snapshot, Mapping) or not snapshot:
            return False
        for resource_type in TRACKED_RESOURCE_TYPES:
            entry = parse_entry(resource_type, snapshot.get(resource_type))
            if entry is None or not entry.is_done:
                return False
        return True
    except Exception as e:  # pragma: no cover - exotic Mapping implementations
        logger.warning(f"Completion check failed, treating as incomplete: {e}")
        return False


def extract_snapshot(payload: Any) -> Dict[str, Any]:
    """
    Pull the progress snapshot out of a job representation.

    Accepts either the bare job (``{"id": ..., "progress": {...}}``) or the
    creation envelope (``{"import": {...}}``). A missing or null progress
    reads as an empty snapshot.

    Raises:
        EvaluationFault: If the payload or its progress is not a mapping
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("import"), Mapping):
        payload = payload["import"]
    if not isinstance(payload, Mapping):
        raise EvaluationFault(
            "Unexpected import status response",
            details={'type': type(payload).__name__}
        )
    progress = payload.get("progress")
    if progress is None:
        return {}
    if not isinstance(progress, Mapping):
        raise EvaluationFault(
            "Import progress is not a mapping",
            details={'type': type(progress).__name__}
        )
    return dict(progress)


@dataclass
class ImportJob:
    """
    Client-side view of one server-side import run.

    Attributes:
        id: Server-assigned identifier (opaque)
        entity_name: Target data scope of the import
        source_files: Names of the submitted files, in part order
        progress: Latest applied progress snapshot
        failure: Failure description once tracking has failed
    """
    id: Any
    entity_name: str
    source_files: List[str] = field(default_factory=list)
    progress: Dict[str, Any] = field(default_factory=dict)
    failure: Optional[str] = None

    @property
    def status(self) -> JobLifecycle:
        if self.failure is not None:
            return JobLifecycle.FAILED
        if is_complete(self.progress):
            return JobLifecycle.COMPLETE
        if self.progress:
            return JobLifecycle.IN_PROGRESS
        return JobLifecycle.CREATED

    @classmethod
    def from_response(
        cls,
        payload: Any,
        entity_name: str = "",
        source_files: Optional[List[str]] = None
    ) -> "ImportJob":
        """
        Build a job from a creation or status response body.

        Raises:
            EvaluationFault: If the body has no job identifier
        """
        snapshot = extract_snapshot(payload)
        body = payload["import"] if isinstance(payload.get("import"), Mapping) else payload
        job_id = body.get("id")
        if job_id is None:
            raise EvaluationFault("Import response has no job id")
        return cls(
            id=job_id,
            entity_name=body.get("entity-name") or body.get("entity_name") or entity_name,
            source_files=list(source_files or []),
            progress=snapshot,
        )
