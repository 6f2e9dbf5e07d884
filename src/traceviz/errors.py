"""Configuration errors.

Most faults at runtime stem from invalid configuration: a component
referencing a Value that doesn't exist, a Value of the wrong type, an
interaction the component can't perform. These are raised as
ConfigurationError so the application can route them to a diagnostics sink
instead of treating them like arbitrary failures.
"""

from __future__ import annotations

import enum


class Severity(enum.IntEnum):
    """How bad a ConfigurationError is; selects the UI response."""

    # Unrecoverable and affects the whole application.
    FATAL = 0
    # Unrecoverable, but confined to one component.
    ERROR = 1
    # Recoverable, e.g. a deprecation notice.
    WARNING = 2


class ConfigurationError(Exception):
    """An error in tool configuration or in data received from the backend.

    Not for invariant violations inside the library itself.

    Usage:
        raise ConfigurationError("no value with key 'x'").from_("value_map").at(Severity.ERROR)
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.source = ""
        self.severity = Severity.WARNING

    def from_(self, source: str) -> ConfigurationError:
        """Name the module or component issuing the error."""
        self.source = source
        return self

    def at(self, severity: Severity) -> ConfigurationError:
        self.severity = severity
        return self

    def __str__(self) -> str:
        if self.source:
            return f"[{self.severity.name}] ({self.source}) {self.message}"
        return f"[{self.severity.name}] {self.message}"

    def __repr__(self) -> str:
        return f"ConfigurationError({self.message!r}, source={self.source!r}, severity={self.severity.name})"
