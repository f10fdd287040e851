"""Exception types shared across the generation engine."""

from __future__ import annotations


class GenerationError(Exception):
    """Raised when a generation run cannot continue.

    The CLI reports the message and exits with a non-zero status; files that
    were already written are left in place.
    """


class SelectionError(GenerationError):
    """Raised when a capability or plugin is not offered for the project."""


class TemplateSourceError(GenerationError):
    """Raised when a remote template URL is invalid, untrusted, or missing."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(message)
