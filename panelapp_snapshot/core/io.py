"""
Standardized I/O operations for the panelapp-snapshot package.

This module holds the schema contract of the PanelApp TSV exports, the
naming convention of downloaded panel files, and the readers and writers
for the manifest and download index tables.
"""

import csv
import logging
import re
from pathlib import Path
from typing import Any

import pandas as pd

from .exceptions import OutputError, ParseError

logger = logging.getLogger(__name__)

# Header of every PanelApp panel export, after spaces are turned into underscores
EXPECTED_COLUMNS = [
    "Entity_Name",
    "Entity_type",
    "Gene_Symbol",
    "Sources(;_separated)",
    "Level4",
    "Level3",
    "Level2",
    "Model_Of_Inheritance",
    "Phenotypes",
    "Omim",
    "Orphanet",
    "HPO",
    "Publications",
    "Description",
    "Flagged",
    "GEL_Status",
    "UserRatings_Green_amber_red",
    "version",
    "ready",
    "Mode_of_pathogenicity",
    "EnsemblId(GRch37)",
    "EnsemblId(GRch38)",
    "HGNC",
    "Position_Chromosome",
    "Position_GRCh37_Start",
    "Position_GRCh37_End",
    "Position_GRCh38_Start",
    "Position_GRCh38_End",
    "STR_Repeated_Sequence",
    "STR_Normal_Repeats",
    "STR_Pathogenic_Repeats",
    "Region_Haploinsufficiency_Score",
    "Region_Triplosensitivity_Score",
    "Region_Required_Overlap_Percentage",
    "Region_Variant_Type",
    "Region_Verbose_Name",
]

# Columns appended to every combined row, taken from the panel file identity
PANEL_ID_COLUMN = "Panel_ID"
PANEL_VERSION_COLUMN = "Panel_Version"

MANIFEST_COLUMNS = ["panel_id", "version", "name"]
INDEX_COLUMNS = ["filename", "panel_id", "version", "name"]

_PAREN_SUFFIX = re.compile(r"\(([^)]*)\)$")
_FILENAME_UNSAFE = re.compile(r"[ /\\]")
_NAME_LINE_BREAKS = re.compile(r"[\t\r\n]")


def used_column_name(column: str) -> str:
    """
    Flatten a parenthesised suffix in an export column name.

    Descriptive suffixes such as ``(;_separated)`` are dropped; value-like
    suffixes such as ``(GRch37)`` are kept behind an underscore.
    """
    match = _PAREN_SUFFIX.search(column)
    if not match:
        return column
    inner = match.group(1)
    stem = column[: match.start()]
    if ";" in inner:
        return stem
    return f"{stem}_{inner}"


USED_COLUMNS = [used_column_name(c) for c in EXPECTED_COLUMNS] + [
    PANEL_ID_COLUMN,
    PANEL_VERSION_COLUMN,
]

EXPECTED_HEADER = "\t".join(EXPECTED_COLUMNS)
USED_HEADER = "\t".join(USED_COLUMNS)


def normalize_header(line: str) -> str:
    """Normalize a raw export header line: drop CR/LF and turn spaces into underscores."""
    return line.replace("\r", "").replace("\n", "").replace(" ", "_")


def clean_panel_name(name: str) -> str:
    """Replace tabs and line breaks in a panel name with single spaces."""
    return _NAME_LINE_BREAKS.sub(" ", name)


def sanitize_filename_component(name: str) -> str:
    """Replace spaces and path separators with underscores for filesystem use."""
    return _FILENAME_UNSAFE.sub("_", name)


def build_panel_filename(name: str, panel_id: str, version: str) -> str:
    """
    Build the on-disk filename of a panel export.

    Args:
        name: Panel name as listed in the manifest
        panel_id: PanelApp panel identifier
        version: Panel version

    Returns:
        Filename of the form ``{sanitized_name}_{panel_id}_{version}.tsv``
    """
    return f"{sanitize_filename_component(name)}_{panel_id}_{version}.tsv"


def parse_panel_filename(filename: str) -> tuple[str, str, str]:
    """
    Recover the panel identity from a filename built by build_panel_filename.

    The last underscore-delimited token of the stem is the version, the one
    before it the panel id, and everything left of that the sanitized name.

    Args:
        filename: File name (a path is accepted, only its name is used)

    Returns:
        Tuple of (panel_id, version, sanitized_name)

    Raises:
        ParseError: If the filename does not carry both an id and a version
    """
    stem = Path(filename).name
    if stem.endswith(".tsv"):
        stem = stem[: -len(".tsv")]

    parts = stem.rsplit("_", 2)
    if len(parts) < 2:
        raise ParseError(f"Cannot derive panel id and version from filename: {filename}")

    version = parts[-1]
    panel_id = parts[-2]
    name = parts[0] if len(parts) == 3 else ""
    if not panel_id or not version:
        raise ParseError(f"Cannot derive panel id and version from filename: {filename}")
    return panel_id, version, name


def _write_rows(path: str | Path, rows: list[list[Any]], mode: str) -> None:
    """
    Write rows as plain tab-separated text.

    Values are written verbatim: no quoting and no escaping, so quotes and
    backslashes in panel names reach the file unchanged. A value holding a
    tab or line break cannot be represented and is rejected.
    """
    try:
        with open(path, mode, encoding="utf-8", newline="") as f:
            writer = csv.writer(
                f,
                delimiter="\t",
                lineterminator="\n",
                quoting=csv.QUOTE_NONE,
                quotechar=None,
                escapechar=None,
            )
            writer.writerows(rows)
    except csv.Error as e:
        raise OutputError(f"Cannot write unescaped TSV value to {path}: {e}") from e
    except OSError as e:
        raise OutputError(f"Cannot write to {path}: {e}") from e


def write_tsv_header(path: str | Path, columns: list[str]) -> None:
    """Create (or truncate) a TSV file holding only a header row."""
    _write_rows(path, [columns], "w")


def append_tsv_records(
    path: str | Path, records: list[dict[str, Any]], columns: list[str]
) -> None:
    """Append records to an existing TSV file without a header."""
    if not records:
        return
    rows = [
        ["" if record.get(c) is None else record[c] for c in columns]
        for record in records
    ]
    _write_rows(path, rows, "a")


def write_tsv_records(
    path: str | Path, records: list[dict[str, Any]], columns: list[str]
) -> None:
    """Write a complete TSV file: header followed by records."""
    write_tsv_header(path, columns)
    append_tsv_records(path, records, columns)


def read_tsv_records(path: str | Path, columns: list[str]) -> list[dict[str, str]]:
    """
    Read a TSV file written by write_tsv_records.

    Args:
        path: File to read
        columns: Columns that must be present in the header

    Returns:
        List of records with all values as strings (missing values are "")

    Raises:
        OutputError: If the file cannot be read
        ParseError: If required columns are missing
    """
    try:
        df = pd.read_csv(
            path,
            sep="\t",
            dtype=str,
            keep_default_na=False,
            quoting=csv.QUOTE_NONE,
        )
    except pd.errors.EmptyDataError as e:
        raise ParseError(f"No header found in {path}") from e
    except OSError as e:
        raise OutputError(f"Cannot read {path}: {e}") from e

    missing_columns = set(columns) - set(df.columns)
    if missing_columns:
        raise ParseError(f"Missing required columns in {path}: {sorted(missing_columns)}")

    return df[columns].fillna("").to_dict("records")
