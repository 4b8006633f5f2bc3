"""Tests for frontmatter parsing and rendering."""

import pytest

from propcmd.documents import FrontmatterError, parse_document, render_document, split_frontmatter
from propcmd.documents.frontmatter import BOM, dump_block


def test_split_frontmatter_returns_block_and_body() -> None:
    block, body = split_frontmatter("---\ntitle: Note\ncount: 3\n---\n# Heading\n")

    assert block == {"title": "Note", "count": 3}
    assert body == "# Heading\n"


def test_document_without_fence_has_no_block() -> None:
    parsed = parse_document("# Just a note\n")

    assert parsed.block is None
    assert parsed.body == "# Just a note\n"


def test_unterminated_fence_is_treated_as_body() -> None:
    text = "---\ntitle: Note\n# Heading\n"
    parsed = parse_document(text)

    assert parsed.block is None
    assert parsed.body == text


def test_empty_block_parses_as_empty_mapping() -> None:
    assert parse_document("---\n---\nbody\n").block == {}


def test_scalars_keep_their_written_form() -> None:
    block, _ = split_frontmatter(
        "---\ncreated: 2024-01-05\nanswer: yes\nflag: true\nempty:\nlevel: 10\n---\n"
    )

    assert block == {
        "created": "2024-01-05",
        "answer": "yes",
        "flag": True,
        "empty": None,
        "level": 10,
    }


def test_invalid_yaml_raises() -> None:
    with pytest.raises(FrontmatterError):
        parse_document("---\ntitle: [unclosed\n---\n")


def test_non_mapping_block_raises() -> None:
    with pytest.raises(FrontmatterError):
        parse_document("---\n- a\n- b\n---\n")


def test_render_document_round_trips_values() -> None:
    block = {"title": "Note", "created": "2024-01-05", "aliases": ["a", "b"], "empty": None}

    text = render_document(block, "Body\n")

    assert text == (
        "---\n"
        "title: Note\n"
        "created: 2024-01-05\n"
        "aliases:\n"
        "  - a\n"
        "  - b\n"
        "empty:\n"
        "---\n"
        "Body\n"
    )
    assert split_frontmatter(text) == (block, "Body\n")


def test_render_document_without_block_returns_body() -> None:
    assert render_document({}, "Body\n") == "Body\n"
    assert render_document(None, "Body\n") == "Body\n"


def test_crlf_and_bom_are_preserved() -> None:
    text = BOM + "---\r\ntitle: Note\r\n---\r\nBody\r\n"
    parsed = parse_document(text)

    assert parsed.block == {"title": "Note"}
    assert parsed.newline == "\r\n"
    rendered = parsed.render({"title": "Changed"})
    assert rendered == BOM + "---\r\ntitle: Changed\r\n---\r\nBody\r\n"


def test_dump_block_quotes_strings_that_look_like_other_types() -> None:
    dumped = dump_block({"count": "7", "flag": "true", "word": "yes"})

    block, _ = split_frontmatter(f"---\n{dumped}---\n")
    assert block == {"count": "7", "flag": "true", "word": "yes"}


def test_number_like_strings_are_not_converted() -> None:
    block, _ = split_frontmatter(
        "---\nzip: 01234\nsize: 1e3\nsigned: +5\nprice: 1.50\nhex: 0x1F\n---\n"
    )

    assert block == {
        "zip": "01234",
        "size": "1e3",
        "signed": "+5",
        "price": "1.50",
        "hex": "0x1F",
    }


def test_unrelated_values_survive_a_rewrite() -> None:
    text = "---\nzip: 01234\nsize: 1e3\ncount: -12\nratio: 0.25\n---\nBody\n"
    parsed = parse_document(text)

    block = dict(parsed.block or {})
    block["x"] = "y"

    assert parsed.render(block) == (
        "---\nzip: 01234\nsize: 1e3\ncount: -12\nratio: 0.25\nx: y\n---\nBody\n"
    )


def test_written_numbers_load_back_as_numbers() -> None:
    block = {"big": 1e20, "small": 1.5e-07, "whole": 100.0, "count": -3}

    loaded, _ = split_frontmatter(f"---\n{dump_block(block)}---\n")

    assert loaded == block
