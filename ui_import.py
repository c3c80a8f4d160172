"""
Streamlit page for submitting bulk imports and following their progress.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import List, Optional, Sequence

import streamlit as st

from alert_sink import Alert, AlertLevel
from api_client import ImportApiClient
from config_manager import get_import_settings, load_config
from exceptions import FinanceAppError, UIError
from import_tracker import ImportTracker
from job_submitter import SourceFile
from utils import guess_content_type
from viz_components import StreamlitProgressVisualizer

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "IMPORT_TRACKER_CONFIG"


def build_slots(uploaded_files: Sequence, max_files: int) -> List[Optional[SourceFile]]:
    """
    Convert Streamlit uploads into upload slots padded to max_files.

    More uploads than slots are passed through unpadded so the submitter
    can reject them with a proper alert.
    """
    slots: List[Optional[SourceFile]] = [
        SourceFile(
            filename=uploaded.name,
            content=uploaded.getvalue(),
            content_type=uploaded.type or guess_content_type(uploaded.name),
        )
        for uploaded in uploaded_files
    ]
    slots.extend([None] * (max_files - len(slots)))
    return slots


def render_alerts(alerts: Sequence[Alert]) -> None:
    """Show alerts in order using the matching Streamlit style."""
    for alert in alerts:
        if alert.level is AlertLevel.SUCCESS:
            st.success(alert.message)
        elif alert.level is AlertLevel.DANGER:
            st.error(alert.message)
        else:
            st.info(alert.message)


def _run_import(tracker: ImportTracker, entity_name: str, slots, csrf_token: Optional[str]):
    try:
        return asyncio.run(tracker.run_import(entity_name, slots, csrf_token))
    except RuntimeError as e:
        raise UIError("Unable to run the import from this page", original_error=e) from e


def launch_import_page() -> None:
    """Render the import form and track a submitted import to completion."""
    st.header("📥 Import Data")
    st.write(
        "Upload up to the configured number of source files. The import runs "
        "on the server; progress for each stage is shown below."
    )

    try:
        config = load_config(os.environ.get(CONFIG_ENV_VAR))
        settings = get_import_settings(config)
    except FinanceAppError as exc:
        st.error(f"Invalid configuration: {exc}")
        logger.exception("Failed to load import settings")
        return

    entity_name = st.text_input("Entity name", help="Entity that receives the imported data")
    uploaded_files = st.file_uploader(
        "Source files",
        accept_multiple_files=True,
        help=f"At most {settings.max_files} files per import."
    ) or []
    csrf_token = st.text_input(
        "Anti-forgery token",
        value=settings.csrf_token or "",
        type="password"
    )

    if not st.button("Import", disabled=not entity_name):
        render_alerts(st.session_state.get("import_alerts", []))
        return

    status_placeholder = st.empty()

    def show_status(status: Optional[str]) -> None:
        if status:
            status_placeholder.info(f"{status.title()}...")
        else:
            status_placeholder.empty()

    api_client = ImportApiClient.from_settings(settings)
    tracker = ImportTracker(api_client, settings, visualizer=StreamlitProgressVisualizer())
    tracker.add_status_listener(show_status)

    try:
        state = _run_import(
            tracker,
            entity_name,
            build_slots(uploaded_files, settings.max_files),
            csrf_token or None
        )
        logger.info(f"Import page finished tracking with state {state.value}")
    except UIError as exc:
        st.error(str(exc))
        logger.exception("Import page failed")
    finally:
        api_client.close()

    st.session_state["import_alerts"] = tracker.alerts.all()
    render_alerts(st.session_state["import_alerts"])


if __name__ == "__main__":
    launch_import_page()
