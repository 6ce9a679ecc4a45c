"""
Panel downloader for PanelApp TSV exports.

Reads the panel manifest, downloads the TSV export of each listed panel into
the panels directory and records which file belongs to which panel in a
download index.
"""

import logging
import time
from pathlib import Path
from typing import Any

from ..core.config_manager import DEFAULT_EXPORT_URL_TEMPLATE
from ..core.exceptions import FetchError, OutputError
from ..core.http_client import PanelAppHTTPClient
from ..core.io import (
    INDEX_COLUMNS,
    MANIFEST_COLUMNS,
    build_panel_filename,
    read_tsv_records,
    write_tsv_records,
)

logger = logging.getLogger(__name__)


def export_url(
    panel_id: str,
    template: str = DEFAULT_EXPORT_URL_TEMPLATE,
    export_suffix: str = "01234",
) -> str:
    """
    Build the export download URL of a panel.

    The URL is keyed by panel id only: the server serves whatever version is
    current, which may differ from the version recorded in the manifest.
    """
    return template.format(panel_id=panel_id, export_suffix=export_suffix)


def read_manifest(manifest_path: str | Path) -> list[dict[str, str]]:
    """
    Read manifest records, requiring a non-empty manifest file.

    Raises:
        OutputError: If the manifest is missing or empty
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file() or manifest_path.stat().st_size == 0:
        raise OutputError(f"Manifest not found or empty: {manifest_path}")
    return read_tsv_records(manifest_path, MANIFEST_COLUMNS)


def download_all(
    out_dir: str | Path,
    api_base: str,
    count_limit: int = 0,
    client: PanelAppHTTPClient | None = None,
    export_url_template: str = DEFAULT_EXPORT_URL_TEMPLATE,
    export_suffix: str = "01234",
    delay: float = 0.1,
    manifest_filename: str = "panel_manifest.tsv",
    panels_dirname: str = "panels",
    index_filename: str = "panel_files.tsv",
    manifest: list[dict[str, str]] | None = None,
) -> list[dict[str, Any]]:
    """
    Download the TSV export of every panel listed in the manifest.

    Any failed download aborts the whole run. A fixed delay is applied after
    each download.

    Args:
        out_dir: Output directory holding the manifest
        api_base: Catalog API base URL (exports are served from a fixed host)
        count_limit: Stop after this many downloads, 0 means no limit
        client: HTTP client, a new one is created if omitted
        export_url_template: Template with {panel_id} and {export_suffix}
        export_suffix: Constant trailing path segment of the export URL
        delay: Seconds to sleep after each download
        manifest_filename: Manifest file name inside out_dir
        panels_dirname: Panels directory name inside out_dir
        index_filename: Download index file name inside out_dir
        manifest: Manifest records already in memory; read from the manifest
            file when omitted

    Returns:
        List of download records (panel_id, version, name, filename, url)
    """
    out_dir = Path(out_dir)
    manifest_path = out_dir / manifest_filename
    panels_dir = out_dir / panels_dirname

    if manifest is None:
        manifest = read_manifest(manifest_path)
    try:
        panels_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise OutputError(f"Failed to create panels dir: {panels_dir}: {e}") from e

    client = client or PanelAppHTTPClient()
    total = len(manifest)
    logger.info(f"Downloading panel TSVs into: {panels_dir} (catalog API: {api_base})")

    downloads: list[dict[str, Any]] = []
    for record in manifest:
        panel_id = record["panel_id"]
        version = record["version"]
        name = record["name"]
        if not panel_id or not version:
            continue

        url = export_url(panel_id, export_url_template, export_suffix)
        filename = build_panel_filename(name, panel_id, version)

        logger.info(f" - [{len(downloads) + 1}/{total}] {panel_id} v{version} {name}")
        logger.debug(
            f"Export URL for panel {panel_id} is not versioned; recording v{version}"
        )
        try:
            client.fetch_to_file(url, panels_dir / filename)
        except FetchError as e:
            raise FetchError(
                url, f"failed to download panel {panel_id} (v{version}): {e.reason}"
            ) from e
        downloads.append(
            {
                "panel_id": panel_id,
                "version": version,
                "name": name,
                "filename": filename,
                "url": url,
            }
        )
        time.sleep(delay)

        if count_limit > 0 and len(downloads) >= count_limit:
            logger.info(f"Reached count limit: {count_limit} (stopping early)")
            break

    write_tsv_records(out_dir / index_filename, downloads, INDEX_COLUMNS)
    logger.info(f"Downloaded {len(downloads)} panel TSVs")
    return downloads
