"""Apply an edit spec across a list of documents and tally the outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List

from pydantic import BaseModel, Field

from propcmd.documents import Document, DocumentError, DocumentStore

from .mutations import (
    Block,
    MutationEngine,
    UpdateOutcome,
    add_properties,
    remove_properties,
    rename_key,
    update_value,
)
from .specs import AddSpec, PropertyDefinition, RemoveSpec, RenameSpec, UpdateSpec
from .values import ValueType

LOGGER = logging.getLogger(__name__)


class BatchKind(str, Enum):
    """Which edit a batch performed."""

    ADD = "add"
    REMOVE = "remove"
    RENAME = "rename"
    UPDATE = "update"


@dataclass
class _Tally:
    added: int = 0
    removed: int = 0
    renamed: int = 0
    updated: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed + self.renamed + self.updated


class BatchFailure(BaseModel):
    """A document the batch could not update."""

    path: str
    message: str


class BatchResult(BaseModel):
    """Counters accumulated over one batch.

    Attributes:
        kind: Edit that was applied.
        files_total: Documents in the batch.
        files_affected: Documents where at least one property changed.
        files_unchanged: Documents read and committed without any change.
        added: Properties created (add, or update/rename with add-missing).
        removed: Properties deleted.
        renamed: Keys renamed.
        updated: Existing values overwritten.
        properties: Number of properties named by an add or remove spec.
        failures: Documents skipped because their transaction failed.
        dry_run: Whether changes were computed without being written.
    """

    kind: BatchKind
    files_total: int = 0
    files_affected: int = 0
    files_unchanged: int = 0
    added: int = 0
    removed: int = 0
    renamed: int = 0
    updated: int = 0
    properties: int = 0
    failures: List[BatchFailure] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return (self.added + self.removed + self.renamed + self.updated) > 0

    def record(self, tally: _Tally) -> None:
        self.added += tally.added
        self.removed += tally.removed
        self.renamed += tally.renamed
        self.updated += tally.updated
        if tally.total > 0:
            self.files_affected += 1
        else:
            self.files_unchanged += 1

    def summary(self) -> str:
        """Return the one-line, human-readable outcome; never empty."""
        prefix = "[dry run] " if self.dry_run else ""
        if not self.changed:
            return f"{prefix}No changes made"
        if self.kind is BatchKind.ADD:
            return (
                f"{prefix}Added {self.properties} property(ies) "
                f"to {self.files_affected} file(s)"
            )
        if self.kind is BatchKind.REMOVE:
            return (
                f"{prefix}Removed {self.properties} property(ies) "
                f"from {self.files_affected} file(s)"
            )
        counters = (("renamed", self.renamed), ("updated", self.updated), ("added", self.added))
        parts = [f"{name} {count}" for name, count in counters if count > 0]
        return f"{prefix}Properties: {', '.join(parts)}"

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json")
        payload["summary"] = self.summary()
        return payload


class BatchOrchestrator:
    """Run one validated edit spec over documents, one transaction per document.

    Documents are processed strictly in order. A document whose transaction
    fails is logged and reported in :attr:`BatchResult.failures`; the batch
    carries on with the next one.
    """

    def __init__(self, store: DocumentStore, *, engine: MutationEngine | None = None) -> None:
        self.store = store
        self.engine = engine or MutationEngine(store)

    def add(self, documents: Iterable[Document], spec: AddSpec) -> BatchResult:
        """Add the spec's properties wherever their keys are absent."""
        spec = spec.validated()
        result = self._new_result(BatchKind.ADD, properties=len(spec.properties))

        def _edit(block: Block) -> _Tally:
            return _Tally(added=add_properties(block, spec.properties))

        return self._run(result, documents, _edit)

    def remove(self, documents: Iterable[Document], spec: RemoveSpec) -> BatchResult:
        """Remove the spec's keys wherever they are present."""
        spec = spec.validated()
        keys = spec.ordered_keys()
        result = self._new_result(BatchKind.REMOVE, properties=len(keys))

        def _edit(block: Block) -> _Tally:
            return _Tally(removed=remove_properties(block, keys))

        return self._run(result, documents, _edit)

    def rename(self, documents: Iterable[Document], spec: RenameSpec) -> BatchResult:
        """Rename keys; with ``add_missing`` create the new key empty where the old is absent."""
        spec = spec.validated()
        rows = spec.active_rows()
        result = self._new_result(BatchKind.RENAME)

        def _edit(block: Block) -> _Tally:
            tally = _Tally()
            for row in rows:
                if rename_key(block, row.original_key, row.new_key):
                    tally.renamed += 1
                elif spec.add_missing:
                    placeholder = PropertyDefinition(key=row.new_key, value="", type=ValueType.TEXT)
                    tally.added += add_properties(block, [placeholder])
            return tally

        return self._run(result, documents, _edit)

    def update(self, documents: Iterable[Document], spec: UpdateSpec) -> BatchResult:
        """Apply value updates; a row that also renames is renamed first.

        With ``add_missing``, a rename-only row creates its new key (empty) where
        the old key is absent, the same as :meth:`rename`.
        """
        spec = spec.validated()
        rows = spec.active_rows()
        result = self._new_result(BatchKind.UPDATE)

        def _edit(block: Block) -> _Tally:
            tally = _Tally()
            for row in rows:
                if row.renamed and rename_key(block, row.key, row.new_key):
                    tally.renamed += 1
                elif not row.update_value and spec.add_missing:
                    placeholder = PropertyDefinition(key=row.new_key, value="", type=ValueType.TEXT)
                    tally.added += add_properties(block, [placeholder])
                if not row.update_value:
                    continue
                outcome = update_value(block, row.target_key, row.value, spec.add_missing)
                if outcome is UpdateOutcome.UPDATED:
                    tally.updated += 1
                elif outcome is UpdateOutcome.ADDED:
                    tally.added += 1
            return tally

        return self._run(result, documents, _edit)

    def _new_result(self, kind: BatchKind, *, properties: int = 0) -> BatchResult:
        return BatchResult(kind=kind, properties=properties, dry_run=self.store.dry_run)

    def _run(
        self,
        result: BatchResult,
        documents: Iterable[Document],
        edit: Callable[[Block], _Tally],
    ) -> BatchResult:
        for document in documents:
            result.files_total += 1
            try:
                tally = self.engine.run(document, edit)
            except DocumentError as exc:
                LOGGER.warning("Skipping %s: %s", document.path, exc)
                result.failures.append(BatchFailure(path=str(document.path), message=str(exc)))
                continue
            result.record(tally)
        LOGGER.info("%s batch finished: %s", result.kind.value, result.summary())
        return result


__all__ = ["BatchFailure", "BatchKind", "BatchOrchestrator", "BatchResult"]
