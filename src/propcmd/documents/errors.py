"""Document store errors."""

from __future__ import annotations

from pathlib import Path


class DocumentError(Exception):
    """Base exception for document read and commit failures."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class FrontmatterError(DocumentError):
    """Raised when a frontmatter block exists but cannot be parsed as a mapping."""


class TransactionError(DocumentError):
    """Raised when a metadata transaction cannot be read or committed."""
