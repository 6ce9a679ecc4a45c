"""
Shared fixtures for panelapp-snapshot tests.
"""

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock

import pytest
import requests

from panelapp_snapshot.core.io import EXPECTED_COLUMNS

# Header as served by PanelApp: spaces where the normalized header has underscores
RAW_EXPORT_HEADER = "\t".join(c.replace("_", " ") for c in EXPECTED_COLUMNS)


def export_row(symbol: str) -> list[str]:
    """Build one export body row with trailing empty region columns."""
    row = [""] * len(EXPECTED_COLUMNS)
    row[0] = symbol
    row[1] = "gene"
    row[2] = symbol
    row[3] = "Expert Review Green"
    row[7] = "MONOALLELIC, autosomal or pseudoautosomal"
    row[17] = "1"
    return row


@pytest.fixture
def raw_header() -> str:
    """Export header line as served, before normalization."""
    return RAW_EXPORT_HEADER


@pytest.fixture
def make_response() -> Callable[..., Mock]:
    """Factory for mocked requests responses."""

    def _make_response(body: bytes | str | dict, status_code: int = 200) -> Mock:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        response = Mock()
        response.status_code = status_code
        response.content = body
        if status_code >= 400:
            response.raise_for_status.side_effect = requests.HTTPError(
                f"{status_code} Client Error"
            )
        else:
            response.raise_for_status.return_value = None
        return response

    return _make_response


@pytest.fixture
def export_content() -> Callable[..., bytes]:
    """Factory for panel export TSV content with the served header."""

    def _export_content(
        symbols: list[str], header: str = RAW_EXPORT_HEADER, newline: str = "\n"
    ) -> bytes:
        lines = [header] + ["\t".join(export_row(s)) for s in symbols]
        return (newline.join(lines) + newline).encode("utf-8")

    return _export_content


@pytest.fixture
def write_panel_file(export_content) -> Callable[..., Path]:
    """Factory writing an export file into a panels directory."""

    def _write_panel_file(
        panels_dir: Path, filename: str, symbols: list[str], **kwargs
    ) -> Path:
        panels_dir.mkdir(parents=True, exist_ok=True)
        path = panels_dir / filename
        path.write_bytes(export_content(symbols, **kwargs))
        return path

    return _write_panel_file


@pytest.fixture
def test_config() -> dict:
    """Configuration with no inter-download delay."""
    return {
        "panelapp": {
            "api_base": "https://panelapp.example.org/api/v1",
            "page_size": 100,
            "export_url_template": "https://panelapp.example.org/panels/{panel_id}/download/{export_suffix}/",
            "export_suffix": "01234",
            "request_delay": 0,
            "timeout": 5,
            "count_limit": 0,
        },
        "output": {
            "manifest_filename": "panel_manifest.tsv",
            "panels_dirname": "panels",
            "index_filename": "panel_files.tsv",
            "combined_filename": "all_panels.tsv",
        },
    }
