"""Edit specifications and the interactive editor state that builds them.

An edit spec is a declared, not yet applied batch change. Editors seed their
rows from aggregated properties, let the user toggle and change them, and
finally turn them into a validated spec for the orchestrator.
"""

from __future__ import annotations

from collections import Counter
from typing import Callable, Generic, Iterable, List, Optional, Set, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator

from .aggregation import AggregatedProperty, sorted_properties
from .errors import ValidationFailure
from .values import RESERVED_KEY, PropertyValue, ValueType, default_value, infer_type


def _reject_reserved(keys: Iterable[str]) -> None:
    if RESERVED_KEY in keys:
        raise ValidationFailure(
            f"The '{RESERVED_KEY}' property is managed separately and cannot be edited here."
        )


def _reject_duplicates(keys: Iterable[str], *, what: str) -> None:
    repeated = sorted(key for key, count in Counter(keys).items() if count > 1)
    if repeated:
        raise ValidationFailure(f"{what} listed more than once: {', '.join(repeated)}")


def _reject_chains(sources: Iterable[str], targets: Iterable[str]) -> None:
    overlap = sorted(set(sources) & set(targets))
    if overlap:
        raise ValidationFailure(
            f"Cannot rename onto a property that is edited in the same run: {', '.join(overlap)}"
        )


class PropertyDefinition(BaseModel):
    """One property to add.

    Attributes:
        key: Property name.
        value: Value written to documents that lack the key.
        type: Value type the value was entered as.
    """

    key: str
    value: PropertyValue = ""
    type: ValueType = ValueType.TEXT

    @field_validator("key")
    @classmethod
    def strip_key(cls, value: str) -> str:
        return value.strip()

    def fresh_value(self) -> PropertyValue:
        """Return a copy of the value safe to store in a document."""
        return list(self.value) if isinstance(self.value, list) else self.value


class AddSpec(BaseModel):
    """Properties to add to every document that lacks them."""

    properties: List[PropertyDefinition] = Field(default_factory=list)

    def validated(self) -> "AddSpec":
        """Return the spec without blank rows.

        Raises:
            ValidationFailure: If no row has a key, a key repeats, or ``tags`` is used.
        """
        rows = [prop for prop in self.properties if prop.key]
        if not rows:
            raise ValidationFailure("Add at least one property with a key.")
        keys = [prop.key for prop in rows]
        _reject_reserved(keys)
        _reject_duplicates(keys, what="Properties")
        return AddSpec(properties=rows)


class RemoveSpec(BaseModel):
    """Keys to delete from every document that has them."""

    keys: Set[str] = Field(default_factory=set)

    def validated(self) -> "RemoveSpec":
        """Return the spec with blank keys dropped.

        Raises:
            ValidationFailure: If no key is selected or ``tags`` is selected.
        """
        keys = {key.strip() for key in self.keys if key.strip()}
        if not keys:
            raise ValidationFailure("Select at least one property to remove.")
        _reject_reserved(keys)
        return RemoveSpec(keys=keys)

    def ordered_keys(self) -> list[str]:
        return sorted(self.keys)


class RenameRow(BaseModel):
    """Rename state for one existing key."""

    original_key: str
    new_key: str = ""
    enabled: bool = False

    @field_validator("new_key")
    @classmethod
    def strip_new_key(cls, value: str) -> str:
        return value.strip()

    @property
    def is_active(self) -> bool:
        return self.enabled and bool(self.new_key) and self.new_key != self.original_key


class RenameSpec(BaseModel):
    """Key renames; ``add_missing`` creates the new key (empty) where the old one is absent."""

    rows: List[RenameRow] = Field(default_factory=list)
    add_missing: bool = False

    def active_rows(self) -> list[RenameRow]:
        """Return the rows that will be applied, ordered by original key."""
        return sorted((row for row in self.rows if row.is_active), key=lambda row: row.original_key)

    def validated(self) -> "RenameSpec":
        """Return the spec reduced to its active rows.

        Raises:
            ValidationFailure: If nothing is renamed, ``tags`` is involved, or
                two rows share a source or target key.
        """
        rows = self.active_rows()
        if not rows:
            raise ValidationFailure("Select at least one property and change its name.")
        _reject_reserved([row.original_key for row in rows] + [row.new_key for row in rows])
        _reject_duplicates([row.original_key for row in rows], what="Renamed properties")
        _reject_duplicates([row.new_key for row in rows], what="New property names")
        _reject_chains([row.original_key for row in rows], [row.new_key for row in rows])
        return RenameSpec(rows=rows, add_missing=self.add_missing)


class ValueEditRow(BaseModel):
    """Value (and optional rename) state for one existing key.

    Attributes:
        key: Key as it currently appears in documents.
        new_key: Key after the edit; equal to ``key`` when not renaming.
        enabled: Whether the row takes part in the batch.
        update_value: Whether the value is written, or the row only renames.
        type: Type the value is edited as.
        value: Value written to documents.
        original_value: Value the row was seeded with.
    """

    key: str
    new_key: str = ""
    enabled: bool = False
    update_value: bool = True
    type: ValueType = ValueType.TEXT
    value: PropertyValue = ""
    original_value: PropertyValue = None

    @field_validator("new_key")
    @classmethod
    def strip_new_key(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def default_new_key(self) -> "ValueEditRow":
        if not self.new_key:
            self.new_key = self.key
        return self

    @property
    def renamed(self) -> bool:
        return bool(self.new_key) and self.new_key != self.key

    @property
    def target_key(self) -> str:
        return self.new_key if self.renamed else self.key

    @property
    def has_effect(self) -> bool:
        return self.enabled and (self.update_value or self.renamed)


class UpdateSpec(BaseModel):
    """Value updates, optionally combined with renames applied first."""

    rows: List[ValueEditRow] = Field(default_factory=list)
    add_missing: bool = False

    def active_rows(self) -> list[ValueEditRow]:
        """Return enabled rows that change something, ordered by key."""
        return sorted((row for row in self.rows if row.has_effect), key=lambda row: row.key)

    def validated(self) -> "UpdateSpec":
        """Return the spec reduced to rows that change something.

        Raises:
            ValidationFailure: If no row is enabled, enabled rows change nothing,
                ``tags`` is involved, or two rows target the same key.
        """
        if not any(row.enabled for row in self.rows):
            raise ValidationFailure("Select at least one property to update.")
        rows = self.active_rows()
        if not rows:
            raise ValidationFailure("Rename a property or enable value updates to change it.")
        _reject_reserved([row.key for row in rows] + [row.target_key for row in rows])
        _reject_duplicates([row.key for row in rows], what="Updated properties")
        _reject_duplicates([row.target_key for row in rows], what="Target property names")
        _reject_chains([row.key for row in rows], [row.new_key for row in rows if row.renamed])
        return UpdateSpec(rows=rows, add_missing=self.add_missing)


# Editor state ---------------------------------------------------------

RowT = TypeVar("RowT", PropertyDefinition, RenameRow, ValueEditRow)


class EditorState(Generic[RowT]):
    """Ordered, mutable row records behind an edit form.

    ``on_change`` is called with the editor after every change so a renderer
    can redraw.
    """

    def __init__(
        self,
        rows: Iterable[RowT],
        *,
        on_change: Optional[Callable[["EditorState[RowT]"], None]] = None,
    ) -> None:
        self.rows: list[RowT] = list(rows)
        self.on_change = on_change

    def row(self, key: str) -> RowT:
        """Return the row whose current key is ``key``.

        Raises:
            KeyError: If no row matches.
        """
        for candidate in self.rows:
            if _row_key(candidate) == key:
                return candidate
        raise KeyError(key)

    def append(self, row: RowT) -> RowT:
        self.rows.append(row)
        self._notify()
        return row

    def update(self, key: str, /, **changes: object) -> RowT:
        """Assign field values on one row and notify the renderer."""
        target = self.row(key)
        for name, value in changes.items():
            setattr(target, name, value)
        self._notify()
        return target

    def set_type(self, key: str, value_type: ValueType) -> RowT:
        """Switch a row's type, resetting its value to that type's default."""
        target = self.row(key)
        if not hasattr(target, "type"):
            raise TypeError(f"{type(target).__name__} rows have no value type")
        value_type = ValueType(value_type)
        target.type = value_type  # type: ignore[union-attr]
        target.value = default_value(value_type)  # type: ignore[union-attr]
        self._notify()
        return target

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)


def _row_key(row: PropertyDefinition | RenameRow | ValueEditRow) -> str:
    if isinstance(row, RenameRow):
        return row.original_key
    return row.key


def rename_editor(
    properties: dict[str, AggregatedProperty],
    *,
    on_change: Optional[Callable[[EditorState[RenameRow]], None]] = None,
) -> EditorState[RenameRow]:
    """Seed one disabled rename row per aggregated key, sorted by key."""
    rows = [
        RenameRow(original_key=prop.key, new_key=prop.key)
        for prop in sorted_properties(properties)
    ]
    return EditorState(rows, on_change=on_change)


def value_editor(
    properties: dict[str, AggregatedProperty],
    *,
    update_value: bool = True,
    on_change: Optional[Callable[[EditorState[ValueEditRow]], None]] = None,
) -> EditorState[ValueEditRow]:
    """Seed one disabled value row per aggregated key from its first observed value.

    Absent values are offered as an empty string so they can be typed over.
    """
    rows = []
    for prop in sorted_properties(properties):
        seed = prop.first_value
        rows.append(
            ValueEditRow(
                key=prop.key,
                new_key=prop.key,
                update_value=update_value,
                type=infer_type(seed),
                value="" if seed is None else seed,
                original_value=seed,
            )
        )
    return EditorState(rows, on_change=on_change)


def add_editor(
    *,
    on_change: Optional[Callable[[EditorState[PropertyDefinition]], None]] = None,
) -> EditorState[PropertyDefinition]:
    """Return an add form with a single blank text row."""
    return EditorState([PropertyDefinition(key="")], on_change=on_change)


__all__ = [
    "AddSpec",
    "EditorState",
    "PropertyDefinition",
    "RemoveSpec",
    "RenameRow",
    "RenameSpec",
    "UpdateSpec",
    "ValueEditRow",
    "add_editor",
    "rename_editor",
    "value_editor",
]
