"""
Concatenator for downloaded PanelApp panel exports.

Validates the export schema against the expected header and merges the body
rows of every panel file into one combined TSV, appending the panel id and
version each row came from.
"""

import logging
from pathlib import Path

from ..core.exceptions import OutputError, SchemaError
from ..core.io import (
    EXPECTED_HEADER,
    INDEX_COLUMNS,
    USED_HEADER,
    normalize_header,
    parse_panel_filename,
    read_tsv_records,
)

logger = logging.getLogger(__name__)


def list_panel_files(panels_dir: str | Path) -> list[Path]:
    """
    List panel export files in lexicographic filename order.

    Raises:
        OutputError: If the directory is missing or holds no TSV files
    """
    panels_dir = Path(panels_dir)
    if not panels_dir.is_dir():
        raise OutputError(f"Panels directory not found: {panels_dir}")

    files = sorted(
        (p for p in panels_dir.iterdir() if p.suffix == ".tsv" and p.is_file()),
        key=lambda p: p.name,
    )
    if not files:
        raise OutputError(f"No TSV files found in {panels_dir}")
    return files


def validate_header(reference_file: str | Path) -> None:
    """
    Check that a panel export carries the expected header.

    Raises:
        SchemaError: If the file is empty or its header differs
        OutputError: If the file cannot be read
    """
    reference_file = Path(reference_file)
    try:
        with open(reference_file, "rb") as f:
            first_line = f.readline()
    except OSError as e:
        raise OutputError(f"Cannot read {reference_file}: {e}") from e

    header = first_line.decode("utf-8", errors="replace")
    if not header.rstrip("\r\n"):
        raise SchemaError(f"First TSV appears empty: {reference_file}")

    normalized = normalize_header(header)
    if normalized != EXPECTED_HEADER:
        logger.error(f"Expected (repr): {EXPECTED_HEADER!r}")
        logger.error(f"Found    (repr): {normalized!r}")
        raise SchemaError(
            f"Header in first TSV does not match expected format: {reference_file}"
        )


def load_panel_index(index_path: str | Path | None) -> dict[str, tuple[str, str]]:
    """
    Load the filename to (panel_id, version) mapping written by the downloader.

    Returns:
        Mapping keyed by filename, empty if the index does not exist
    """
    if index_path is None or not Path(index_path).is_file():
        return {}
    records = read_tsv_records(index_path, INDEX_COLUMNS)
    return {r["filename"]: (r["panel_id"], r["version"]) for r in records}


def panel_identity(
    panel_file: Path, index: dict[str, tuple[str, str]]
) -> tuple[str, str]:
    """Resolve (panel_id, version) of a panel file, preferring the download index."""
    if panel_file.name in index:
        return index[panel_file.name]
    panel_id, version, _ = parse_panel_filename(panel_file.name)
    return panel_id, version


def transform_line(line: bytes, panel_id: bytes, version: bytes) -> bytes | None:
    """
    Normalize one export body line and append the panel identity fields.

    Trailing carriage returns are removed. Lines left empty yield None;
    whitespace-only lines are ordinary rows. The line
    is rebuilt from its tab-separated fields, so every field, empty or not,
    keeps its position in front of the appended columns.
    """
    line = line.rstrip(b"\n").rstrip(b"\r")
    if not line:
        return None
    fields = line.split(b"\t")
    fields.extend([panel_id, version])
    return b"\t".join(fields) + b"\n"


def append_panel_file(
    panel_file: Path, panel_id: str, version: str, out_handle
) -> int:
    """Append the body rows of one panel file to an open combined file."""
    id_bytes = panel_id.encode("utf-8")
    version_bytes = version.encode("utf-8")
    rows = 0
    with open(panel_file, "rb") as f:
        f.readline()  # header
        for line in f:
            transformed = transform_line(line, id_bytes, version_bytes)
            if transformed is None:
                continue
            out_handle.write(transformed)
            rows += 1
    return rows


def concatenate(
    out_dir: str | Path,
    panels_dirname: str = "panels",
    combined_filename: str = "all_panels.tsv",
    index_filename: str | None = "panel_files.tsv",
) -> int:
    """
    Concatenate all panel exports into a single combined TSV.

    The first file in lexicographic order serves as the schema reference;
    later files are not re-validated. Panel id and version come from the
    download index when the file is listed there, otherwise from the
    filename.

    Args:
        out_dir: Output directory holding the panels directory
        panels_dirname: Panels directory name inside out_dir
        combined_filename: Combined output file name inside out_dir
        index_filename: Download index file name inside out_dir, or None to
            derive identities from filenames only

    Returns:
        Number of data rows written to the combined file
    """
    out_dir = Path(out_dir)
    panels_dir = out_dir / panels_dirname
    combined = out_dir / combined_filename

    panel_files = list_panel_files(panels_dir)
    validate_header(panel_files[0])
    index = load_panel_index(out_dir / index_filename if index_filename else None)

    logger.info(f"Writing combined TSV: {combined}")
    total_rows = 0
    try:
        with open(combined, "wb") as out:
            out.write(USED_HEADER.encode("utf-8") + b"\n")
            for panel_file in panel_files:
                panel_id, version = panel_identity(panel_file, index)
                rows = append_panel_file(panel_file, panel_id, version, out)
                logger.debug(
                    f"Appended {rows} rows from {panel_file.name} "
                    f"(panel {panel_id} v{version})"
                )
                total_rows += rows
    except OSError as e:
        raise OutputError(f"Failed to write {combined}: {e}") from e

    logger.info(f"Concatenation complete: {combined} ({total_rows} rows)")
    return total_rows
