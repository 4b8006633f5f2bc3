"""Read and transactionally rewrite document frontmatter."""

from __future__ import annotations

import copy
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Callable

from .errors import DocumentError, FrontmatterError, TransactionError
from .frontmatter import ParsedDocument, dump_block, parse_document
from .models import Document
from .traversal import UNLIMITED_DEPTH, list_markdown_documents

LOGGER = logging.getLogger(__name__)

MetadataBlock = dict[str, Any]
Mutator = Callable[[MetadataBlock], None]


class DocumentStore:
    """Own all frontmatter I/O for Markdown documents.

    Writes only happen through :meth:`transact_metadata_block`, which re-reads
    the document, hands a copy of the block to a mutator, and commits the result
    atomically when it differs from what was read.
    """

    def __init__(
        self,
        *,
        encoding: str = "utf-8",
        commit_retries: int = 3,
        dry_run: bool = False,
    ) -> None:
        if commit_retries < 1:
            raise ValueError("commit_retries must be at least 1")
        self.encoding = encoding
        self.commit_retries = commit_retries
        self.dry_run = dry_run

    def read_metadata_block(self, document: Document) -> MetadataBlock:
        """Return the document's frontmatter, or an empty mapping if it has none.

        Unreadable files and unparsable frontmatter are also reported as empty.
        """
        try:
            parsed = self._load(document.path)
        except DocumentError as exc:
            LOGGER.debug("Treating %s as having no frontmatter: %s", document.path, exc)
            return {}
        return parsed.block or {}

    def transact_metadata_block(self, document: Document, mutator: Mutator) -> bool:
        """Apply ``mutator`` to the document's frontmatter and commit the result.

        The mutator receives a mutable copy of the block. Nothing is written when
        it raises, when the block comes back unchanged, or in dry-run mode. If the
        file changes on disk between the read and the commit, the whole
        read-modify-write is repeated against the new contents.

        Args:
            document: Document to update.
            mutator: Callable that edits the block in place.

        Returns:
            bool: True when the block changed (and was written unless dry-run).

        Raises:
            TransactionError: If the document cannot be read, parsed, or written.
        """
        path = document.path
        for attempt in range(1, self.commit_retries + 1):
            text = self._read_text(path)
            try:
                parsed = parse_document(text)
            except FrontmatterError as exc:
                raise TransactionError(f"{path}: {exc}", path=path) from exc

            original = parsed.block or {}
            working = copy.deepcopy(original)
            mutator(working)
            if dump_block(working) == dump_block(original):
                return False
            if self.dry_run:
                return True

            if self._read_text(path) != text:
                LOGGER.info(
                    "%s changed while being edited; retrying (attempt %d of %d).",
                    path,
                    attempt,
                    self.commit_retries,
                )
                continue
            self._write_atomic(path, parsed.render(working))
            return True

        raise TransactionError(
            f"{path}: document kept changing during commit; gave up after "
            f"{self.commit_retries} attempt(s).",
            path=path,
        )

    def list_markdown_documents(
        self,
        folder: Path,
        include_subfolders: bool = True,
        depth_level: int = UNLIMITED_DEPTH,
        **options: bool,
    ) -> list[Document]:
        """Return Markdown documents under ``folder`` in traversal order."""
        return list_markdown_documents(folder, include_subfolders, depth_level, **options)

    # Internal helpers -------------------------------------------------

    def _load(self, path: Path) -> ParsedDocument:
        return parse_document(self._read_text(path))

    def _read_text(self, path: Path) -> str:
        try:
            with path.open("r", encoding=self.encoding, newline="") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise TransactionError(f"{path}: cannot read document: {exc}", path=path) from exc

    def _write_atomic(self, path: Path, text: str) -> None:
        tmp = path.with_name(f".{path.name}.propcmd.tmp")
        try:
            with tmp.open("w", encoding=self.encoding, newline="") as handle:
                handle.write(text)
            shutil.copymode(path, tmp)
            os.replace(tmp, path)
        except OSError as exc:
            tmp.unlink(missing_ok=True)
            raise TransactionError(f"{path}: cannot write document: {exc}", path=path) from exc


__all__ = ["DocumentStore", "MetadataBlock", "Mutator"]
