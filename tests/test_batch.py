"""Tests for batch application of edit specs."""

from pathlib import Path

from propcmd.documents import Document, DocumentStore
from propcmd.properties import (
    AddSpec,
    BatchKind,
    BatchOrchestrator,
    BatchResult,
    PropertyDefinition,
    RemoveSpec,
    RenameRow,
    RenameSpec,
    UpdateSpec,
    ValueEditRow,
    ValueType,
)


def _note(tmp_path: Path, name: str, text: str) -> Document:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return Document(path=path)


def _read(document: Document) -> str:
    return document.path.read_text(encoding="utf-8")


def test_add_to_every_file(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\ntitle: A\n---\n")
    b = _note(tmp_path, "b.md", "Body\n")
    spec = AddSpec(properties=[PropertyDefinition(key="status", value="draft")])

    result = BatchOrchestrator(DocumentStore()).add([a, b], spec)

    assert result.summary() == "Added 1 property(ies) to 2 file(s)"
    assert _read(a) == "---\ntitle: A\nstatus: draft\n---\n"
    assert _read(b) == "---\nstatus: draft\n---\nBody\n"


def test_add_skips_files_that_already_have_the_key(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nstatus: done\n---\n")
    b = _note(tmp_path, "b.md", "---\ntitle: B\n---\n")
    spec = AddSpec(properties=[PropertyDefinition(key="status", value="draft")])

    result = BatchOrchestrator(DocumentStore()).add([a, b], spec)

    assert result.files_affected == 1
    assert result.files_unchanged == 1
    assert _read(a) == "---\nstatus: done\n---\n"


def test_rename_with_add_missing(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nstatus: done\n---\n")
    b = _note(tmp_path, "b.md", "---\ntitle: B\n---\n")
    spec = RenameSpec(
        rows=[RenameRow(original_key="status", new_key="state", enabled=True)],
        add_missing=True,
    )

    result = BatchOrchestrator(DocumentStore()).rename([a, b], spec)

    assert result.summary() == "Properties: renamed 1, added 1"
    assert _read(a) == "---\nstate: done\n---\n"
    assert _read(b) == "---\ntitle: B\nstate: ''\n---\n"


def test_remove_missing_key_reports_no_changes(tmp_path: Path) -> None:
    text = "---\ntitle: A\n---\n"
    a = _note(tmp_path, "a.md", text)

    result = BatchOrchestrator(DocumentStore()).remove([a], RemoveSpec(keys={"status"}))

    assert result.summary() == "No changes made"
    assert result.files_unchanged == 1
    assert _read(a) == text


def test_remove_reports_property_count(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nstatus: done\nowner: me\ntags: [x]\n---\n")
    b = _note(tmp_path, "b.md", "---\nstatus: draft\n---\n")

    result = BatchOrchestrator(DocumentStore()).remove(
        [a, b], RemoveSpec(keys={"status", "owner"})
    )

    assert result.summary() == "Removed 2 property(ies) from 2 file(s)"
    assert result.removed == 3
    assert _read(a) == "---\ntags:\n  - x\n---\n"
    assert _read(b) == ""


def test_update_renames_before_writing_value(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nstatus: draft\n---\n")
    b = _note(tmp_path, "b.md", "---\nowner: me\n---\n")
    row = ValueEditRow(
        key="status", new_key="state", enabled=True, type=ValueType.TEXT, value="done"
    )

    result = BatchOrchestrator(DocumentStore()).update(
        [a, b], UpdateSpec(rows=[row], add_missing=True)
    )

    assert result.summary() == "Properties: renamed 1, updated 1, added 1"
    assert _read(a) == "---\nstate: done\n---\n"
    assert _read(b) == "---\nowner: me\nstate: done\n---\n"


def test_update_without_add_missing_leaves_other_files(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\ndone: false\n---\n")
    b = _note(tmp_path, "b.md", "---\nowner: me\n---\n")
    row = ValueEditRow(key="done", enabled=True, type=ValueType.CHECKBOX, value=True)

    result = BatchOrchestrator(DocumentStore()).update([a, b], UpdateSpec(rows=[row]))

    assert result.summary() == "Properties: updated 1"
    assert _read(a) == "---\ndone: true\n---\n"
    assert _read(b) == "---\nowner: me\n---\n"


def test_failed_documents_are_reported_and_skipped(tmp_path: Path) -> None:
    broken = _note(tmp_path, "broken.md", "---\n- a\n---\n")
    good = _note(tmp_path, "good.md", "Body\n")
    spec = AddSpec(properties=[PropertyDefinition(key="status")])

    result = BatchOrchestrator(DocumentStore()).add([broken, good], spec)

    assert result.files_total == 2
    assert result.files_affected == 1
    assert [failure.path for failure in result.failures] == [str(broken.path)]
    assert _read(good) == "---\nstatus: ''\n---\nBody\n"


def test_dry_run_counts_without_writing(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "Body\n")
    spec = AddSpec(properties=[PropertyDefinition(key="status", value="draft")])

    result = BatchOrchestrator(DocumentStore(dry_run=True)).add([a], spec)

    assert result.summary() == "[dry run] Added 1 property(ies) to 1 file(s)"
    assert _read(a) == "Body\n"


def test_result_payload_includes_summary() -> None:
    result = BatchResult(kind=BatchKind.UPDATE, updated=2, files_affected=2, files_total=3)

    payload = result.to_payload()

    assert payload["kind"] == "update"
    assert payload["summary"] == "Properties: updated 2"
    assert payload["failures"] == []


def test_update_rename_only_with_add_missing_creates_key(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nstatus: draft\n---\n")
    b = _note(tmp_path, "b.md", "---\nowner: me\n---\n")
    row = ValueEditRow(key="status", new_key="state", enabled=True, update_value=False)

    result = BatchOrchestrator(DocumentStore()).update(
        [a, b], UpdateSpec(rows=[row], add_missing=True)
    )

    assert result.summary() == "Properties: renamed 1, added 1"
    assert _read(a) == "---\nstate: draft\n---\n"
    assert _read(b) == "---\nowner: me\nstate: ''\n---\n"


def test_update_rename_only_without_add_missing_skips_other_files(tmp_path: Path) -> None:
    b = _note(tmp_path, "b.md", "---\nowner: me\n---\n")
    row = ValueEditRow(key="status", new_key="state", enabled=True, update_value=False)

    result = BatchOrchestrator(DocumentStore()).update([b], UpdateSpec(rows=[row]))

    assert result.summary() == "No changes made"
    assert _read(b) == "---\nowner: me\n---\n"


def test_second_add_keeps_first_value(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "Body\n")
    orchestrator = BatchOrchestrator(DocumentStore())

    first = orchestrator.add(
        [a], AddSpec(properties=[PropertyDefinition(key="status", value="draft")])
    )
    second = orchestrator.add(
        [a], AddSpec(properties=[PropertyDefinition(key="status", value="done")])
    )

    assert first.added == 1
    assert second.added == 0
    assert second.summary() == "No changes made"
    assert _read(a) == "---\nstatus: draft\n---\nBody\n"


def test_update_applied_twice_gives_same_value(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\npriority: 1\n---\n")
    row = ValueEditRow(key="priority", enabled=True, type=ValueType.NUMBER, value=3)
    spec = UpdateSpec(rows=[row])
    orchestrator = BatchOrchestrator(DocumentStore())

    orchestrator.update([a], spec)
    after_first = _read(a)
    second = orchestrator.update([a], spec)

    assert after_first == "---\npriority: 3\n---\n"
    assert _read(a) == after_first
    assert second.files_unchanged == 1


def test_add_preserves_number_like_strings_in_other_keys(tmp_path: Path) -> None:
    a = _note(tmp_path, "a.md", "---\nzip: 01234\nsize: 1e3\n---\n")
    spec = AddSpec(properties=[PropertyDefinition(key="x", value="y")])

    BatchOrchestrator(DocumentStore()).add([a], spec)

    assert _read(a) == "---\nzip: 01234\nsize: 1e3\nx: y\n---\n"
