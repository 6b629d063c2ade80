"""
Domain exceptions for autodep.

All application errors inherit from AutodepError. Errors that abort a
single discovery/install cycle inherit from CycleError; whether such an
error ends the process is decided by the supervisor's failure policy.
"""

from __future__ import annotations

from pathlib import Path


class AutodepError(Exception):
    """Base class for all autodep exceptions."""

    def __init__(self, message: str, context: dict | None = None):
        super().__init__(message)
        self.context = context or {}


class CycleError(AutodepError):
    """Raised when one discovery -> reconcile -> install cycle cannot complete."""

    pass


class ParseError(CycleError):
    """Raised when a module's source cannot be analyzed."""

    def __init__(self, path: str | Path, line: int | None = None, column: int | None = None, reason: str = ""):
        self.path = str(path)
        self.line = line
        self.column = column
        self.reason = reason
        location = self.path
        if line is not None:
            location += f":{line}"
            if column is not None:
                location += f":{column}"
        message = f"Cannot parse {location}"
        if reason:
            message += f": {reason}"
        super().__init__(message, {"path": self.path, "line": line, "column": column})


class ResolutionError(CycleError):
    """Raised when a specifier cannot be mapped to a readable file."""

    def __init__(self, specifier: str, base_dir: str | Path | None = None, reason: str = ""):
        self.specifier = specifier
        self.base_dir = str(base_dir) if base_dir is not None else None
        message = f"Cannot resolve '{specifier}'"
        if self.base_dir:
            message += f" from {self.base_dir}"
        if reason:
            message += f": {reason}"
        super().__init__(message, {"specifier": specifier, "base_dir": self.base_dir})


class InstallError(CycleError):
    """Raised when the installer batch fails."""

    def __init__(self, specs: list[str], reason: str = ""):
        self.specs = list(specs)
        message = f"Failed to install {', '.join(self.specs)}"
        if reason:
            message += f": {reason}"
        super().__init__(message, {"specs": self.specs})


class ManifestError(CycleError):
    """Raised when the manifest exists but is unreadable or malformed."""

    def __init__(self, path: str | Path, reason: str = ""):
        self.path = str(path)
        message = f"Invalid manifest {self.path}"
        if reason:
            message += f": {reason}"
        super().__init__(message, {"path": self.path})


class SpawnError(AutodepError):
    """Raised when the child interpreter process cannot be started. Always fatal."""

    pass
