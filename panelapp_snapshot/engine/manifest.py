"""
Manifest builder for the PanelApp panel catalog.

Walks the paginated ``/panels/`` endpoint and writes one manifest row per
cataloged panel: its id, version and name.
"""

import logging
from pathlib import Path
from typing import Any

from ..core.exceptions import ParseError
from ..core.http_client import PanelAppHTTPClient
from ..core.io import (
    MANIFEST_COLUMNS,
    append_tsv_records,
    clean_panel_name,
    write_tsv_header,
)

logger = logging.getLogger(__name__)

# Field names under which the catalog may report a panel identifier
ID_FIELDS = ("id", "panel_id", "pk")


def catalog_url(api_base: str, page_size: int = 100) -> str:
    """Build the URL of the first catalog page."""
    return f"{api_base.rstrip('/')}/panels/?page=1&page_size={page_size}"


def _first_present(result: dict[str, Any], fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = result.get(field)
        if value is not None and value is not False:
            return value
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def extract_catalog_entry(result: Any) -> dict[str, str] | None:
    """
    Map a single catalog result to a manifest record.

    Args:
        result: One item of the page's ``results`` list

    Returns:
        Record with panel_id, version and name, or None if any of the three
        is missing or empty
    """
    if not isinstance(result, dict):
        return None

    record = {
        "panel_id": _as_text(_first_present(result, ID_FIELDS)),
        "version": _as_text(result.get("version")),
        "name": clean_panel_name(_as_text(result.get("name"))),
    }
    if not all(record.values()):
        return None
    return record


def extract_page_records(page: dict[str, Any], url: str) -> list[dict[str, str]]:
    """
    Extract manifest records from a decoded catalog page.

    Raises:
        ParseError: If the page has no ``results`` list
    """
    results = page.get("results")
    if not isinstance(results, list):
        raise ParseError(f"Catalog page has no results list: {url}")

    records = []
    for result in results:
        record = extract_catalog_entry(result)
        if record is None:
            logger.debug(f"Dropping incomplete catalog entry: {result!r}")
            continue
        records.append(record)
    return records


def build_manifest(
    out_path: str | Path,
    api_base: str,
    client: PanelAppHTTPClient | None = None,
    page_size: int = 100,
) -> list[dict[str, str]]:
    """
    Harvest the panel catalog into a manifest TSV.

    The manifest header is written first and each page's rows are appended
    as soon as the page is fetched. Pagination follows the ``next`` link
    until it is empty or absent. Rows keep catalog order and are not
    deduplicated.

    Args:
        out_path: Manifest file to create
        api_base: Catalog API base URL
        client: HTTP client, a new one is created if omitted
        page_size: Number of entries requested per page

    Returns:
        List of manifest records written, in order
    """
    out_path = Path(out_path)
    client = client or PanelAppHTTPClient()

    logger.info(f"Writing panel manifest to: {out_path}")
    write_tsv_header(out_path, MANIFEST_COLUMNS)

    records: list[dict[str, str]] = []
    url: str | None = catalog_url(api_base, page_size)
    pages = 0
    while url:
        logger.info(f"Fetching page: {url}")
        page = client.fetch_json(url)
        pages += 1

        page_records = extract_page_records(page, url)
        append_tsv_records(out_path, page_records, MANIFEST_COLUMNS)
        records.extend(page_records)

        url = page.get("next") or None

    logger.info(f"Manifest complete: {len(records)} panels from {pages} pages")
    return records
