"""Tests for Markdown discovery within folders."""

from pathlib import Path

import pytest

from propcmd.documents import FolderTraversal, list_markdown_documents


def _tree(root: Path) -> None:
    for relative in (
        "b.md",
        "A.md",
        "notes.txt",
        "sub/c.md",
        "sub/deeper/d.md",
        "Zed/e.MD",
        ".hidden/f.md",
        ".secret.md",
    ):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("body\n", encoding="utf-8")


def _names(root: Path, documents) -> list[str]:
    return [doc.path.relative_to(root).as_posix() for doc in documents]


def test_scan_lists_direct_files_before_subfolders(tmp_path: Path) -> None:
    _tree(tmp_path)

    documents = FolderTraversal().scan(tmp_path)

    assert _names(tmp_path, documents) == [
        "A.md",
        "b.md",
        "sub/c.md",
        "sub/deeper/d.md",
        "Zed/e.MD",
    ]


def test_scan_without_subfolders(tmp_path: Path) -> None:
    _tree(tmp_path)

    documents = list_markdown_documents(tmp_path, include_subfolders=False)

    assert _names(tmp_path, documents) == ["A.md", "b.md"]


def test_depth_level_limits_descent(tmp_path: Path) -> None:
    _tree(tmp_path)

    documents = FolderTraversal(depth_level=1).scan(tmp_path)

    assert _names(tmp_path, documents) == ["A.md", "b.md", "sub/c.md", "Zed/e.MD"]
    assert _names(tmp_path, FolderTraversal(depth_level=0).scan(tmp_path)) == ["A.md", "b.md"]


def test_hidden_entries_can_be_included(tmp_path: Path) -> None:
    _tree(tmp_path)

    documents = FolderTraversal(include_hidden=True, depth_level=1).scan(tmp_path)

    names = _names(tmp_path, documents)
    assert ".secret.md" in names
    assert ".hidden/f.md" in names


def test_symlinked_folders_are_skipped_by_default(tmp_path: Path) -> None:
    _tree(tmp_path)
    link = tmp_path / "loop"
    try:
        link.symlink_to(tmp_path, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks unavailable")

    plain = FolderTraversal().scan(tmp_path)
    followed = FolderTraversal(follow_symlinks=True).scan(tmp_path)

    assert len(plain) == 5
    assert len(followed) == 5


def test_invalid_arguments(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        FolderTraversal(depth_level=-2)
    with pytest.raises(NotADirectoryError):
        FolderTraversal().scan(tmp_path / "missing")
