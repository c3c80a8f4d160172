"""
HTTP client for the finance application's import API.

Wraps the two endpoints the import tracker consumes:

- ``POST /api/imports`` creates a job from a multipart upload
- ``GET /api/imports/{id}`` returns the job with its progress map

Both raise ApiError on transport failures and non-2xx responses, carrying
the server's status text so callers can show it verbatim.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from config_manager import ImportSettings
from exceptions import ApiError

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-Token"

# (part name, (filename, content, content type)) as accepted by requests
FilePart = Tuple[str, Tuple[Optional[str], Any, str]]


class ImportApiClient:
    """Blocking client with async facades for use inside the event loop."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    @classmethod
    def from_settings(cls, settings: ImportSettings) -> "ImportApiClient":
        return cls(settings.base_url, timeout=settings.timeout)

    def _make_request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Make an API request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        logger.debug(f"Making {method} request to: {url}")

        try:
            response = self.session.request(method=method, url=url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f"Request timeout: {url}")
            raise ApiError("Request timed out", original_error=e) from e
        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {url}")
            raise ApiError("Unable to connect to the import service", original_error=e) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error: {e}")
            raise ApiError(f"Network error: {e}", original_error=e) from e

        logger.debug(f"Response status: {response.status_code}")

        if not 200 <= response.status_code < 300:
            status_text = response.reason or f"HTTP {response.status_code}"
            logger.error(f"API error {response.status_code}: {status_text}")
            raise ApiError(status_text, status_code=response.status_code, details={'url': url})

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                "Invalid JSON in response",
                status_code=response.status_code,
                original_error=e
            ) from e

    def create_import(
        self,
        entity_name: str,
        files: List[FilePart],
        csrf_token: Optional[str]
    ) -> Dict[str, Any]:
        """
        Create an import job.

        The token goes in a header; Content-Type is left to requests so the
        multipart boundary is set correctly.
        """
        headers = {CSRF_HEADER: csrf_token} if csrf_token else {}
        # A (None, value) part is a plain form field; sending it through
        # files keeps the body multipart even when no file slot is populated
        parts = [("entity-name", (None, entity_name))] + list(files)
        return self._make_request("POST", "/api/imports", files=parts, headers=headers)

    def get_import(self, import_id: Any) -> Dict[str, Any]:
        """Fetch the current representation of an import job."""
        return self._make_request("GET", f"/api/imports/{import_id}")

    async def create_import_async(
        self,
        entity_name: str,
        files: List[FilePart],
        csrf_token: Optional[str]
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(self.create_import, entity_name, files, csrf_token)

    async def get_import_async(self, import_id: Any) -> Dict[str, Any]:
        return await asyncio.to_thread(self.get_import, import_id)

    def close(self) -> None:
        self.session.close()
