"""
Pipeline orchestrator for the panelapp-snapshot tool.

This module provides the Pipeline class that runs the three stages strictly
in sequence:

- Harvest the paginated panel catalog into a manifest
- Download the TSV export of every manifest entry
- Validate and concatenate the exports into one combined table
"""

import logging
from pathlib import Path
from typing import Any, Optional

from ..core.config_manager import ConfigManager
from ..core.exceptions import OutputError, UsageError
from ..core.http_client import PanelAppHTTPClient
from .concatenator import concatenate
from .downloader import download_all
from .manifest import build_manifest

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates the catalog, download and concatenation stages."""

    def __init__(
        self,
        config: dict[str, Any],
        output_dir: str | Path,
        client: Optional[PanelAppHTTPClient] = None,
    ):
        """
        Initialize the pipeline with configuration.

        Args:
            config: Configuration dictionary
            output_dir: Output directory, must not exist yet
            client: HTTP client shared by all stages, created from config if
                omitted. A client created here is closed when run() returns.
        """
        self.config_manager = ConfigManager(config)
        self.output_dir = Path(output_dir)
        self._owns_client = client is None
        self.client = client or PanelAppHTTPClient(
            timeout=self.config_manager.get_timeout()
        )

    @property
    def manifest_path(self) -> Path:
        return self.output_dir / self.config_manager.get_manifest_filename()

    @property
    def panels_dir(self) -> Path:
        return self.output_dir / self.config_manager.get_panels_dirname()

    @property
    def combined_path(self) -> Path:
        return self.output_dir / self.config_manager.get_combined_filename()

    def prepare_output_dir(self) -> None:
        """
        Create the output directory.

        Raises:
            UsageError: If the path already exists
            OutputError: If the directory cannot be created
        """
        if self.output_dir.exists():
            raise UsageError(f"Output directory already exists: {self.output_dir}")
        try:
            self.output_dir.mkdir(parents=True)
        except OSError as e:
            raise OutputError(
                f"Failed to create output dir: {self.output_dir}: {e}"
            ) from e

    def build_manifest(self) -> list[dict[str, str]]:
        """Run the catalog stage."""
        return build_manifest(
            self.manifest_path,
            self.config_manager.get_api_base(),
            client=self.client,
            page_size=self.config_manager.get_page_size(),
        )

    def download(
        self,
        count_limit: Optional[int] = None,
        manifest: Optional[list[dict[str, str]]] = None,
    ) -> list[dict[str, Any]]:
        """Run the download stage, reading the manifest file unless records are given."""
        if count_limit is None:
            count_limit = self.config_manager.get_count_limit()
        return download_all(
            self.output_dir,
            self.config_manager.get_api_base(),
            count_limit=count_limit,
            client=self.client,
            export_url_template=self.config_manager.get_export_url_template(),
            export_suffix=self.config_manager.get_export_suffix(),
            delay=self.config_manager.get_request_delay(),
            manifest_filename=self.config_manager.get_manifest_filename(),
            panels_dirname=self.config_manager.get_panels_dirname(),
            index_filename=self.config_manager.get_index_filename(),
            manifest=manifest,
        )

    def concatenate(self) -> int:
        """Run the concatenation stage."""
        return concatenate(
            self.output_dir,
            panels_dirname=self.config_manager.get_panels_dirname(),
            combined_filename=self.config_manager.get_combined_filename(),
            index_filename=self.config_manager.get_index_filename(),
        )

    def run(self, count_limit: Optional[int] = None) -> dict[str, Any]:
        """
        Run the complete pipeline on a fresh output directory.

        Any stage failure propagates immediately; partial output is left in
        place.

        Args:
            count_limit: Override of the configured download limit

        Returns:
            Run summary with output locations and record counts
        """
        try:
            self.prepare_output_dir()

            logger.info(f"Catalog API: {self.config_manager.get_api_base()}")
            manifest_records = self.build_manifest()
            downloads = self.download(count_limit, manifest_records)
            combined_rows = self.concatenate()
        finally:
            if self._owns_client:
                self.client.close()

        return {
            "manifest": str(self.manifest_path),
            "panels_dir": str(self.panels_dir),
            "combined": str(self.combined_path),
            "manifest_records": len(manifest_records),
            "downloaded": len(downloads),
            "combined_rows": combined_rows,
        }
