"""Tests for cross-file property aggregation."""

from pathlib import Path

from propcmd.documents import Document, DocumentStore
from propcmd.properties import PropertyAggregator, ValueType, sorted_properties


def _docs(tmp_path: Path, *texts: str) -> list[Document]:
    documents = []
    for index, text in enumerate(texts):
        path = tmp_path / f"note{index}.md"
        path.write_text(text, encoding="utf-8")
        documents.append(Document(path=path))
    return documents


def test_aggregate_collects_distinct_values_and_types(tmp_path: Path) -> None:
    documents = _docs(
        tmp_path,
        "---\nstatus: draft\npriority: 1\ntags: [a]\n---\n",
        "---\nstatus: done\npriority: true\n---\n",
        "---\nstatus: draft\n---\n",
        "no frontmatter\n",
    )

    properties = PropertyAggregator(DocumentStore()).aggregate(documents)

    assert list(properties) == ["status", "priority"]
    status = properties["status"]
    assert status.values == ["draft", "done"]
    assert status.file_count == 3
    assert status.types == {ValueType.TEXT}

    priority = properties["priority"]
    assert priority.values == [1, True]
    assert priority.types == {ValueType.NUMBER, ValueType.CHECKBOX}
    assert priority.primary_type is ValueType.NUMBER


def test_aggregate_skips_tags_and_unsupported_shapes(tmp_path: Path) -> None:
    documents = _docs(
        tmp_path,
        "---\ntags: [x]\nmeta:\n  nested: 1\nempty:\nlinks:\n  - a\n  - b\n---\n",
    )

    properties = PropertyAggregator(DocumentStore()).aggregate(documents)

    assert sorted(properties) == ["empty", "links"]
    assert properties["empty"].values == [None]
    assert properties["links"].primary_type is ValueType.LIST


def test_unreadable_documents_contribute_nothing(tmp_path: Path) -> None:
    documents = _docs(tmp_path, "---\nbad: [\n---\n", "---\nok: 1\n---\n")
    documents.append(Document(path=tmp_path / "missing.md"))

    properties = PropertyAggregator(DocumentStore()).aggregate(documents)

    assert list(properties) == ["ok"]


def test_sorted_properties_orders_by_key(tmp_path: Path) -> None:
    documents = _docs(tmp_path, "---\nzeta: 1\nalpha: 2\n---\n")

    properties = PropertyAggregator(DocumentStore()).aggregate(documents)

    assert [prop.key for prop in sorted_properties(properties)] == ["alpha", "zeta"]
