"""Errors raised before a property batch starts."""


class PropertyError(Exception):
    """Base exception for property editing failures."""


class ValidationFailure(PropertyError):
    """Raised when an edit request is incomplete or contradicts a rule."""


class EmptySelection(PropertyError):
    """Raised when the chosen folder or files resolve to no Markdown documents."""
