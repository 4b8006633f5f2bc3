"""Resolve the user's target selection into a list of documents."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from propcmd.documents import Document, FolderTraversal, is_markdown

from .errors import EmptySelection, ValidationFailure


def resolve_selection(paths: Sequence[Path], traversal: FolderTraversal) -> list[Document]:
    """Return the documents targeted by ``paths``.

    ``paths`` is either a single folder, expanded with ``traversal``, or one or
    more individual files. Non-Markdown files are dropped and repeated files
    are kept once, in the order given.

    Raises:
        ValidationFailure: If nothing was selected, a path is missing, or
            folders and files are mixed.
        EmptySelection: If the selection contains no Markdown documents.
    """
    if not paths:
        raise ValidationFailure("Select a folder or at least one file.")

    missing = [str(path) for path in paths if not path.exists()]
    if missing:
        raise ValidationFailure(f"Path not found: {', '.join(missing)}")

    folders = [path for path in paths if path.is_dir()]
    if folders:
        if len(paths) > 1:
            raise ValidationFailure("Select either one folder or individual files, not both.")
        documents = traversal.scan(folders[0])
    else:
        seen: set[Path] = set()
        documents = []
        for path in paths:
            resolved = path.resolve()
            if resolved in seen or not is_markdown(path):
                continue
            seen.add(resolved)
            documents.append(Document(path=path))

    if not documents:
        raise EmptySelection("No Markdown files found in selection.")
    return documents


__all__ = ["resolve_selection"]
