"""Tests for value type inference, defaults, and input codecs."""

import pytest

from propcmd.properties import (
    ValueType,
    default_value,
    format_value,
    infer_type,
    is_property_value,
    parse_value,
    render_value,
)
from propcmd.properties.values import value_key


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (True, ValueType.CHECKBOX),
        (False, ValueType.CHECKBOX),
        (3, ValueType.NUMBER),
        (2.5, ValueType.NUMBER),
        (["a", "b"], ValueType.LIST),
        ("2024-03-01", ValueType.DATE),
        ("2024-03-01T10:00", ValueType.TEXT),
        ("draft", ValueType.TEXT),
        (None, ValueType.TEXT),
    ],
)
def test_infer_type(value, expected) -> None:
    assert infer_type(value) is expected


def test_default_values_per_type() -> None:
    assert default_value(ValueType.TEXT) == ""
    assert default_value(ValueType.NUMBER) == 0
    assert default_value(ValueType.CHECKBOX) is False
    assert default_value(ValueType.DATE) == ""
    assert default_value(ValueType.LIST) == []


def test_list_default_is_a_fresh_list() -> None:
    first = default_value(ValueType.LIST)
    first.append("x")

    assert default_value(ValueType.LIST) == []


def test_is_property_value_rejects_nested_shapes() -> None:
    assert is_property_value(None)
    assert is_property_value(["a", "b"])
    assert not is_property_value({"nested": 1})
    assert not is_property_value(["a", 1])
    assert not is_property_value([["a"]])


def test_format_value_previews() -> None:
    assert format_value(None) == "null"
    assert format_value(True) == "true"
    assert format_value(["a", "b", "c"]) == "[3 items]"
    assert format_value("x" * 30) == "x" * 20
    assert format_value(12) == "12"


def test_parse_number() -> None:
    assert parse_value("42", ValueType.NUMBER) == 42
    assert isinstance(parse_value("42", ValueType.NUMBER), int)
    assert parse_value("4.50", ValueType.NUMBER) == pytest.approx(4.5)
    assert parse_value("", ValueType.NUMBER) == 0
    with pytest.raises(ValueError):
        parse_value("many", ValueType.NUMBER)
    with pytest.raises(ValueError):
        parse_value("inf", ValueType.NUMBER)


def test_parse_checkbox() -> None:
    assert parse_value("yes", ValueType.CHECKBOX) is True
    assert parse_value("False", ValueType.CHECKBOX) is False
    assert parse_value("", ValueType.CHECKBOX) is False
    with pytest.raises(ValueError):
        parse_value("maybe", ValueType.CHECKBOX)


def test_parse_date_validates_calendar() -> None:
    assert parse_value("2024-02-29", ValueType.DATE) == "2024-02-29"
    assert parse_value("", ValueType.DATE) == ""
    with pytest.raises(ValueError):
        parse_value("2023-02-29", ValueType.DATE)
    with pytest.raises(ValueError):
        parse_value("03/01/2024", ValueType.DATE)


def test_parse_list_drops_blank_items() -> None:
    assert parse_value(" a, b ,, c ", ValueType.LIST) == ["a", "b", "c"]
    assert parse_value("", ValueType.LIST) == []


def test_render_value_for_editing() -> None:
    assert render_value(["a", "b"], ValueType.LIST) == "a, b"
    assert render_value(True, ValueType.CHECKBOX) == "true"
    assert render_value(None, ValueType.TEXT) == ""
    assert render_value("text", ValueType.NUMBER) == "0"


def test_value_key_keeps_booleans_apart_from_numbers() -> None:
    assert value_key(True) != value_key(1)
    assert value_key(["a"]) == value_key(["a"])
