"""Fehlerklassen für Factur-X (Konstruktion vs. Serialisierung)."""

from __future__ import annotations


class DomainValidationError(ValueError):
    """Raised when an entity or value type violates one of its own invariants.

    ``constraint`` is a dotted code such as ``invoice.currency_code.unknown``.
    """

    def __init__(self, constraint: str, message: str) -> None:
        super().__init__(f"{constraint}: {message}")
        self.constraint = constraint
        self.message = message


class SerializationError(RuntimeError):
    """A mandatory CII node has no data source for the active profile."""
