"""Markdown discovery within folder trees."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from .models import Document, is_markdown

UNLIMITED_DEPTH = -1


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


class FolderTraversal:
    """Resolve a folder plus inclusion and depth options into Markdown documents.

    Direct files of a folder come before the contents of its subfolders, and
    siblings are visited in name order so repeated runs give the same list.
    """

    def __init__(
        self,
        *,
        include_subfolders: bool = True,
        depth_level: int = UNLIMITED_DEPTH,
        include_hidden: bool = False,
        follow_symlinks: bool = False,
    ) -> None:
        if depth_level < UNLIMITED_DEPTH:
            raise ValueError(f"depth_level must be -1 or greater, got {depth_level}")
        self.include_subfolders = include_subfolders
        self.depth_level = depth_level
        self.include_hidden = include_hidden
        self.follow_symlinks = follow_symlinks

    def scan(self, folder: Path) -> list[Document]:
        """Return every Markdown document reachable from ``folder``.

        Raises:
            NotADirectoryError: If ``folder`` does not exist or is not a directory.
        """
        root = folder.expanduser()
        if not root.is_dir():
            raise NotADirectoryError(f"Not a folder: {root}")
        visited: set[Path] = set()
        return [Document(path=path) for path in self._walk(root, 0, visited)]

    def _walk(self, folder: Path, depth: int, visited: set[Path]) -> Iterator[Path]:
        resolved = folder.resolve()
        if resolved in visited:
            return
        visited.add(resolved)

        files: list[Path] = []
        subfolders: list[Path] = []
        for child in self._children(folder):
            if not self.include_hidden and _is_hidden(child):
                continue
            if child.is_dir():
                if child.is_symlink() and not self.follow_symlinks:
                    continue
                subfolders.append(child)
            elif child.is_file() and is_markdown(child):
                files.append(child)

        yield from files
        if not self._can_descend(depth):
            return
        for subfolder in subfolders:
            yield from self._walk(subfolder, depth + 1, visited)

    def _children(self, folder: Path) -> list[Path]:
        try:
            with os.scandir(folder) as entries:
                children = [Path(entry.path) for entry in entries]
        except OSError:
            return []
        return sorted(children, key=lambda child: (child.name.casefold(), child.name))

    def _can_descend(self, depth: int) -> bool:
        if not self.include_subfolders:
            return False
        return self.depth_level == UNLIMITED_DEPTH or depth < self.depth_level


def list_markdown_documents(
    folder: Path,
    include_subfolders: bool = True,
    depth_level: int = UNLIMITED_DEPTH,
    *,
    include_hidden: bool = False,
    follow_symlinks: bool = False,
) -> list[Document]:
    """Return Markdown documents under ``folder``; see :class:`FolderTraversal`."""
    traversal = FolderTraversal(
        include_subfolders=include_subfolders,
        depth_level=depth_level,
        include_hidden=include_hidden,
        follow_symlinks=follow_symlinks,
    )
    return traversal.scan(folder)


__all__ = ["FolderTraversal", "UNLIMITED_DEPTH", "list_markdown_documents"]
