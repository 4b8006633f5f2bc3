"""Property aggregation, editing, and batch application."""

from .aggregation import AggregatedProperty, PropertyAggregator, sorted_properties
from .batch import BatchFailure, BatchKind, BatchOrchestrator, BatchResult
from .errors import EmptySelection, PropertyError, ValidationFailure
from .mutations import (
    MutationEngine,
    UpdateOutcome,
    add_properties,
    remove_properties,
    rename_key,
    update_value,
)
from .selection import resolve_selection
from .specs import (
    AddSpec,
    EditorState,
    PropertyDefinition,
    RemoveSpec,
    RenameRow,
    RenameSpec,
    UpdateSpec,
    ValueEditRow,
    add_editor,
    rename_editor,
    value_editor,
)
from .values import (
    RESERVED_KEY,
    VALUE_CODECS,
    PropertyValue,
    ValueType,
    default_value,
    format_value,
    infer_type,
    is_property_value,
    parse_value,
    render_value,
)

__all__ = [
    "AddSpec",
    "AggregatedProperty",
    "BatchFailure",
    "BatchKind",
    "BatchOrchestrator",
    "BatchResult",
    "EditorState",
    "EmptySelection",
    "MutationEngine",
    "PropertyAggregator",
    "PropertyDefinition",
    "PropertyError",
    "PropertyValue",
    "RESERVED_KEY",
    "RemoveSpec",
    "RenameRow",
    "RenameSpec",
    "UpdateOutcome",
    "UpdateSpec",
    "VALUE_CODECS",
    "ValidationFailure",
    "ValueEditRow",
    "ValueType",
    "add_editor",
    "add_properties",
    "default_value",
    "format_value",
    "infer_type",
    "is_property_value",
    "parse_value",
    "remove_properties",
    "rename_editor",
    "rename_key",
    "render_value",
    "resolve_selection",
    "sorted_properties",
    "update_value",
    "value_editor",
]
