"""Error taxonomy for the scan pipeline."""

from __future__ import annotations


class LayerVulnError(Exception):
    """Base class for all pipeline errors."""


class ExecutionError(LayerVulnError):
    """The scanner process failed to start, exited non-zero or timed out."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class MalformedReportError(LayerVulnError):
    """The scanner report is missing structure needed to decode or attribute it."""


class ConfigIOError(LayerVulnError):
    """Reading, parsing or writing the scanner config artifact failed."""


class PackageFilesError(LayerVulnError):
    """A package manager could not produce the file list of a package."""


class ResolutionWarning(UserWarning):
    """A package's file list could not be determined, even after remapping."""
