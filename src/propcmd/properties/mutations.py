"""Structural edits applied to a single document's metadata block.

The module-level functions operate on an in-memory block and are what the
batch orchestrator composes inside one transaction per document.
:class:`MutationEngine` runs each of them as its own transaction for callers
that edit one document at a time.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Iterable, MutableMapping, TypeVar

from propcmd.documents import Document, DocumentError, DocumentStore

from .specs import PropertyDefinition
from .values import RESERVED_KEY, PropertyValue, value_key

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Block = MutableMapping[str, Any]


class UpdateOutcome(str, Enum):
    """Result of :func:`update_value` for one document."""

    UPDATED = "updated"
    ADDED = "added"
    NO_CHANGE = "no_change"


def add_properties(block: Block, properties: Iterable[PropertyDefinition]) -> int:
    """Insert each property whose key is absent; return how many were inserted.

    Existing keys are never overwritten.
    """
    added = 0
    for prop in properties:
        if not prop.key or prop.key == RESERVED_KEY or prop.key in block:
            continue
        block[prop.key] = prop.fresh_value()
        added += 1
    return added


def remove_properties(block: Block, keys: Iterable[str]) -> int:
    """Delete each present key; return how many were deleted."""
    removed = 0
    for key in keys:
        if key == RESERVED_KEY or key not in block:
            continue
        del block[key]
        removed += 1
    return removed


def rename_key(block: Block, old_key: str, new_key: str) -> bool:
    """Move the value at ``old_key`` to ``new_key``.

    Any value already at ``new_key`` is overwritten. Returns False, leaving the
    block untouched, when ``old_key`` is absent.
    """
    if RESERVED_KEY in (old_key, new_key) or old_key not in block:
        return False
    if old_key == new_key:
        return True
    block[new_key] = block.pop(old_key)
    return True


def update_value(
    block: Block,
    key: str,
    value: PropertyValue,
    add_if_missing: bool,
) -> UpdateOutcome:
    """Overwrite ``key`` or, when allowed, create it.

    Writing the value a key already holds is reported as ``NO_CHANGE``.
    """
    if key == RESERVED_KEY:
        return UpdateOutcome.NO_CHANGE
    if key in block:
        if value_key(block[key]) == value_key(value):
            return UpdateOutcome.NO_CHANGE
        block[key] = _copy_value(value)
        return UpdateOutcome.UPDATED
    if add_if_missing:
        block[key] = _copy_value(value)
        return UpdateOutcome.ADDED
    return UpdateOutcome.NO_CHANGE


def _copy_value(value: PropertyValue) -> PropertyValue:
    return list(value) if isinstance(value, list) else value


class MutationEngine:
    """Run block edits against documents through the store's transactions."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def run(self, document: Document, edit: Callable[[Block], T]) -> T:
        """Apply ``edit`` in one transaction and return what it returned.

        Raises:
            DocumentError: If the transaction cannot be completed.
        """
        outcome: list[T] = []

        def _mutator(block: Block) -> None:
            outcome.clear()
            outcome.append(edit(block))

        self.store.transact_metadata_block(document, _mutator)
        return outcome[0]

    def add(self, document: Document, properties: Iterable[PropertyDefinition]) -> int:
        """Add absent properties to ``document``; 0 on failure."""
        props = list(properties)
        return self._absorb(document, lambda block: add_properties(block, props), 0)

    def remove(self, document: Document, keys: Iterable[str]) -> int:
        """Remove present keys from ``document``; 0 on failure."""
        selected = list(keys)
        return self._absorb(document, lambda block: remove_properties(block, selected), 0)

    def rename(self, document: Document, old_key: str, new_key: str) -> bool:
        """Rename a key in ``document``; False on failure."""
        return self._absorb(document, lambda block: rename_key(block, old_key, new_key), False)

    def update_value(
        self,
        document: Document,
        key: str,
        value: PropertyValue,
        add_if_missing: bool,
    ) -> UpdateOutcome:
        """Update or add a value in ``document``; NO_CHANGE on failure."""
        return self._absorb(
            document,
            lambda block: update_value(block, key, value, add_if_missing),
            UpdateOutcome.NO_CHANGE,
        )

    def _absorb(self, document: Document, edit: Callable[[Block], T], fallback: T) -> T:
        try:
            return self.run(document, edit)
        except DocumentError as exc:
            LOGGER.warning("Could not update properties in %s: %s", document.path, exc)
            return fallback


__all__ = [
    "MutationEngine",
    "UpdateOutcome",
    "add_properties",
    "remove_properties",
    "rename_key",
    "update_value",
]
