"""Errors raised by the reporting layer."""
from __future__ import annotations


class ReportError(Exception):
    """Base class for every reporting failure we raise ourselves."""
    pass


class ReportValidationError(ReportError, ValueError):
    """Raised when report parameters are malformed or out of range."""
    pass


class UnknownReportError(ReportValidationError):
    """Raised when the caller names a report that is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown report '{name}'")
        self.name = name


class ReportConfigError(ReportError, ValueError):
    """Raised when the configuration file defines reports or rules we cannot use."""
    pass


class ReadOnlyViolationError(ReportError):
    """Raised when a configured query attempts to modify the database."""
    pass
