from __future__ import annotations


class AdminkitError(Exception):
    """Base class for errors raised by adminkit."""


class ConfigError(AdminkitError):
    """Invalid configuration or an input source that cannot be loaded."""


class LookupMiss(AdminkitError, KeyError):
    """A drawn dice key has no entry in the word list."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"La clave {self.key} no existe en la lista de palabras"


class ProbeError(AdminkitError):
    """A remote capability failed for a single host."""


class EnumerationError(ProbeError):
    """The remote service query failed (transport, auth or permission)."""


class ProbeTimeout(ProbeError, TimeoutError):
    """A probe exceeded the per-host deadline."""
