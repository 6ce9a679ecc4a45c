"""
PanelApp Snapshot: flat-file snapshots of the PanelApp Australia gene panel database.

This package harvests the PanelApp panel catalog, downloads the TSV export of
every cataloged panel and combines them into a single normalized table.
"""

from ._version import __version__

__all__ = ["__version__"]
