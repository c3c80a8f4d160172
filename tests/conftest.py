import logging
import sys
from pathlib import Path

import pytest

# Modules live at the repository root (flat layout)
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from alert_sink import AlertSink  # noqa: E402
from progress_model import ImportJob  # noqa: E402


COMPLETE_SNAPSHOT = {
    "account": {"total": 5, "imported": 5},
    "transaction": {"total": 3, "imported": 3},
    "budget": {"total": 1, "imported": 1},
}

PARTIAL_SNAPSHOT = {
    "account": {"total": 5, "imported": 4},
    "transaction": {"total": 3, "imported": 3},
    "budget": {"total": 1, "imported": 1},
}


@pytest.fixture
def alerts():
    """Create an empty alert sink."""
    return AlertSink()


@pytest.fixture
def job():
    """Create a freshly submitted import job."""
    return ImportJob(id=42, entity_name="Personal", source_files=["accounts.gnucash"])


@pytest.fixture
def restore_root_logger():
    """Keep handler changes made by setup_logging from leaking into other tests."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
