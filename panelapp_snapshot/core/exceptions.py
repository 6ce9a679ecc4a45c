"""
Exception hierarchy for the panelapp-snapshot pipeline.

Every error raised on purpose by the pipeline derives from PanelSnapshotError,
so the CLI can turn it into a single ``ERROR:`` line and an exit code.
"""


class PanelSnapshotError(Exception):
    """Base class for all pipeline errors."""

    exit_code = 1


class UsageError(PanelSnapshotError):
    """Invalid command-line usage, e.g. an output directory that already exists."""

    exit_code = 2


class DependencyError(PanelSnapshotError):
    """A required Python distribution is not installed."""

    pass


class FetchError(PanelSnapshotError):
    """An HTTP request failed, returned an error status or an empty body."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Request failed for {url}: {reason}")


class ParseError(PanelSnapshotError):
    """A response or filename could not be parsed."""

    pass


class SchemaError(PanelSnapshotError):
    """A panel export does not carry the expected header."""

    pass


class OutputError(PanelSnapshotError):
    """A file or directory could not be created, read or written."""

    pass
