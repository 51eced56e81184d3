"""
Failure conditions shared by the data sources, the correlator and the
hosted-model client.
"""

from __future__ import annotations


class InvalidCoordinatesError(ValueError):
    """Query latitude/longitude is non-finite or out of range."""


class SourceFetchError(RuntimeError):
    """An upstream NASA source was unreachable or returned a malformed payload."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class ModelError(RuntimeError):
    """The hosted model failed or returned output that does not match the schema."""
