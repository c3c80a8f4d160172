"""
Import orchestration: one submission and poll cycle at a time.

The tracker owns the alert sink, the status message shown next to the
import form, and the single live PollSession. Starting a new import always
cancels the previous session first.
"""

import logging
from typing import Callable, List, Optional, Sequence

from alert_sink import AlertSink
from api_client import ImportApiClient
from config_manager import ImportSettings
from job_submitter import JobSubmitter, SourceFile, SubmissionFailure
from progress_poller import PollSession, PollState
from viz_components import ProgressVisualizer

logger = logging.getLogger(__name__)


class ImportTracker:
    """
    Drives an import from submission to a terminal state.

    Example:
        >>> tracker = ImportTracker(ImportApiClient.from_settings(settings), settings)
        >>> state = asyncio.run(tracker.run_import("Personal", slots, token))
        >>> [alert.message for alert in tracker.alerts]
        ['Import complete.']
    """

    def __init__(
        self,
        api_client: ImportApiClient,
        settings: ImportSettings,
        visualizer: Optional[ProgressVisualizer] = None,
        alerts: Optional[AlertSink] = None
    ):
        self.api_client = api_client
        self.settings = settings
        self.visualizer = visualizer
        self.alerts = alerts or AlertSink()
        self.status_message: Optional[str] = None
        self.session: Optional[PollSession] = None
        self._status_listeners: List[Callable[[Optional[str]], None]] = []
        self._generation = 0

    def add_status_listener(self, listener: Callable[[Optional[str]], None]) -> None:
        """Register a callable notified whenever the status message changes."""
        self._status_listeners.append(listener)

    def _set_status(self, status: Optional[str]) -> None:
        self.status_message = status
        for listener in self._status_listeners:
            listener(status)

    def _status_for(self, generation: int) -> Callable[[Optional[str]], None]:
        # Status updates from a superseded submission are dropped.
        def update(status: Optional[str]) -> None:
            if generation == self._generation:
                self._set_status(status)
        return update

    def cancel(self) -> None:
        """Cancel the live poll session, if any."""
        if self.session is not None:
            self.session.cancel()

    def _begin(self) -> int:
        self._generation += 1
        self.cancel()
        self.session = None
        self.alerts.clear()
        return self._generation

    async def _submit_and_poll(
        self,
        generation: int,
        entity_name: str,
        source_files: Sequence[Optional[SourceFile]],
        csrf_token: Optional[str]
    ) -> Optional[PollSession]:
        submitter = JobSubmitter(
            self.api_client,
            max_files=self.settings.max_files,
            status_callback=self._status_for(generation)
        )
        result = await submitter.submit(
            entity_name,
            source_files,
            csrf_token or self.settings.csrf_token
        )

        if generation != self._generation:
            logger.info(f"Dropping superseded submission for '{entity_name}'")
            return None
        if isinstance(result, SubmissionFailure):
            self.alerts.danger(result.message)
            return None

        self.session = PollSession(
            result,
            self.api_client.get_import_async,
            self.alerts,
            visualizer=self.visualizer,
            interval=self.settings.poll_interval,
            status_callback=self._set_status
        )
        self.session.start()
        return self.session

    async def start_import(
        self,
        entity_name: str,
        source_files: Sequence[Optional[SourceFile]],
        csrf_token: Optional[str] = None
    ) -> Optional[PollSession]:
        """
        Submit an import and start polling it.

        A later call supersedes this one even while the upload is still in
        flight: the earlier submission then starts no session.

        Args:
            entity_name: Target data scope
            source_files: Upload slots; None marks an empty slot
            csrf_token: Anti-forgery token (falls back to the configured one)

        Returns:
            The live PollSession, or None if submission failed or was superseded
        """
        generation = self._begin()
        return await self._submit_and_poll(generation, entity_name, source_files, csrf_token)

    async def run_import(
        self,
        entity_name: str,
        source_files: Sequence[Optional[SourceFile]],
        csrf_token: Optional[str] = None
    ) -> PollState:
        """
        Submit an import and wait until tracking ends.

        Returns:
            Final session state; FAILED when submission itself failed and
            CANCELLED when a newer import superseded it
        """
        generation = self._begin()
        session = await self._submit_and_poll(generation, entity_name, source_files, csrf_token)
        if session is None:
            if generation != self._generation:
                return PollState.CANCELLED
            return PollState.FAILED
        return await session.wait()
