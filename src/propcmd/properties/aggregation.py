"""Cross-file aggregation of existing properties."""

from __future__ import annotations

import logging
from typing import Iterable, List, Set

from pydantic import BaseModel, Field

from propcmd.documents import Document, DocumentStore

from .values import RESERVED_KEY, PropertyValue, ValueType, infer_type, is_property_value, value_key

LOGGER = logging.getLogger(__name__)


class AggregatedProperty(BaseModel):
    """Every distinct value and type observed for one key across a file set.

    Attributes:
        key: Property name.
        values: Distinct values in first-seen order.
        types: Distinct inferred types.
        file_count: Number of documents carrying the key.
    """

    key: str
    values: List[PropertyValue] = Field(default_factory=list)
    types: Set[ValueType] = Field(default_factory=set)
    file_count: int = 0

    def observe(self, value: PropertyValue) -> None:
        """Record one occurrence of ``value`` in a document."""
        self.file_count += 1
        self.types.add(infer_type(value))
        identity = value_key(value)
        if all(value_key(seen) != identity for seen in self.values):
            self.values.append(value)

    @property
    def first_value(self) -> PropertyValue:
        """Return the first value seen, or an empty string when none was recorded."""
        return self.values[0] if self.values else ""

    @property
    def primary_type(self) -> ValueType:
        """Return the type editors should start from: that of the first value seen."""
        return infer_type(self.first_value)


class PropertyAggregator:
    """Build the per-key view of properties for a set of documents."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def aggregate(self, documents: Iterable[Document]) -> dict[str, AggregatedProperty]:
        """Scan ``documents`` and collect their properties, keyed in first-seen order.

        ``tags`` and values of unsupported shapes are skipped. Documents that
        cannot be read contribute nothing.
        """
        properties: dict[str, AggregatedProperty] = {}
        for document in documents:
            block = self.store.read_metadata_block(document)
            for key, value in block.items():
                if not isinstance(key, str) or key == RESERVED_KEY:
                    continue
                if not is_property_value(value):
                    LOGGER.debug("Skipping %s in %s: unsupported value shape.", key, document.path)
                    continue
                entry = properties.get(key)
                if entry is None:
                    entry = properties[key] = AggregatedProperty(key=key)
                entry.observe(value)
        return properties


def sorted_properties(properties: dict[str, AggregatedProperty]) -> list[AggregatedProperty]:
    """Return aggregated properties ordered by key."""
    return [properties[key] for key in sorted(properties)]


__all__ = ["AggregatedProperty", "PropertyAggregator", "sorted_properties"]
