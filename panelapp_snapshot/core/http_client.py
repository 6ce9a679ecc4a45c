"""
HTTP client for the PanelApp REST API and its file download endpoints.

This module wraps a requests session with the fail-fast semantics the
pipeline relies on: a single failed request raises immediately, there are
no retries.
"""

import json
import logging
from pathlib import Path
from typing import Any

import requests

from .._version import __version__
from .exceptions import FetchError, OutputError, ParseError

logger = logging.getLogger(__name__)


class PanelAppHTTPClient:
    """Client for fetching PanelApp catalog pages and panel exports."""

    def __init__(self, timeout: int = 60, user_agent: str | None = None):
        """
        Initialize the HTTP client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update(
            {"User-Agent": user_agent or f"panelapp-snapshot/{__version__}"}
        )

    def fetch(self, url: str) -> bytes:
        """
        Fetch a URL and return the response body.

        Redirects are followed. Any network error, non-success status or
        empty body raises FetchError.

        Args:
            url: URL to fetch

        Returns:
            Raw response body

        Raises:
            FetchError: If the request fails or the body is empty
        """
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        content = response.content
        if not content:
            raise FetchError(url, "empty response body")
        return content

    def fetch_json(self, url: str) -> dict[str, Any]:
        """
        Fetch a URL and decode the body as a JSON object.

        Args:
            url: URL to fetch

        Returns:
            Decoded JSON object

        Raises:
            FetchError: If the request fails
            ParseError: If the body is not a JSON object
        """
        content = self.fetch(url)
        try:
            document = json.loads(content)
        except ValueError as e:
            raise ParseError(f"Malformed JSON response from {url}: {e}") from e

        if not isinstance(document, dict):
            raise ParseError(
                f"Expected a JSON object from {url}, got {type(document).__name__}"
            )
        return document

    def fetch_to_file(self, url: str, dest_path: str | Path) -> int:
        """
        Fetch a URL and write the body to a file.

        Args:
            url: URL to fetch
            dest_path: Destination file path

        Returns:
            Number of bytes written

        Raises:
            FetchError: If the request fails
            OutputError: If the file cannot be written
        """
        content = self.fetch(url)
        dest_path = Path(dest_path)
        try:
            with open(dest_path, "wb") as f:
                f.write(content)
        except OSError as e:
            raise OutputError(f"Cannot write {dest_path}: {e}") from e

        logger.debug(f"Wrote {len(content)} bytes to {dest_path}")
        return len(content)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self) -> "PanelAppHTTPClient":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit - close the session."""
        self.close()
