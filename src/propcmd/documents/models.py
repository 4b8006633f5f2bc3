"""Document data models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

MARKDOWN_SUFFIX = ".md"


class Document(BaseModel):
    """A Markdown file whose frontmatter can be read and rewritten.

    Attributes:
        path: Location of the Markdown file.
    """

    model_config = ConfigDict(frozen=True)

    path: Path


def is_markdown(path: Path) -> bool:
    """Return True when ``path`` names a Markdown file."""
    return path.suffix.lower() == MARKDOWN_SUFFIX


__all__ = ["Document", "MARKDOWN_SUFFIX", "is_markdown"]
