"""Command line interface for propcmd."""

from __future__ import annotations

import difflib
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from propcmd.config import ConfigError, ConfigManager, PropcmdConfig, resolve_with_precedence
from propcmd.documents import Document, DocumentStore, FolderTraversal
from propcmd.properties import (
    RESERVED_KEY,
    AddSpec,
    AggregatedProperty,
    BatchOrchestrator,
    BatchResult,
    EditorState,
    EmptySelection,
    PropertyAggregator,
    PropertyDefinition,
    PropertyError,
    RemoveSpec,
    RenameRow,
    RenameSpec,
    UpdateSpec,
    ValidationFailure,
    ValueEditRow,
    ValueType,
    add_editor,
    default_value,
    format_value,
    parse_value,
    rename_editor,
    render_value,
    resolve_selection,
    sorted_properties,
    value_editor,
)

console = Console()
LOGGER = logging.getLogger(__name__)

_TYPE_NAMES = [value_type.value for value_type in ValueType]


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        click.echo(json.dumps(payload, indent=2))
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """
    if quiet and mode != "error":
        return
    if summary_only and mode not in {"summary", "warning", "error"}:
        return
    console.print(message)


def _configure_logging(level_name: str, verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(json_output: bool = False) -> PropcmdConfig:
    try:
        return ConfigManager().load()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        raise


# Batch plumbing ---------------------------------------------------------


@dataclass
class _BatchContext:
    """Everything a batch command needs after the selection step."""

    config: PropcmdConfig
    store: DocumentStore
    documents: list[Document]
    target: str
    json_output: bool
    quiet: bool
    summary_only: bool
    interactive: bool

    def emit(self, message: Any, mode: str = "detail") -> None:
        if self.json_output:
            return
        _emit_message(message, mode=mode, quiet=self.quiet, summary_only=self.summary_only)

    def fail(self, exc: PropertyError) -> None:
        code = "empty_selection" if isinstance(exc, EmptySelection) else "validation_error"
        _handle_cli_error(str(exc), code=code, json_output=self.json_output, original=exc)

    def aggregate(self) -> dict[str, AggregatedProperty]:
        return PropertyAggregator(self.store).aggregate(self.documents)


def _batch_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the selection and output options shared by every batch command."""
    options = [
        click.argument(
            "targets", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path)
        ),
        click.option(
            "--subfolders/--no-subfolders",
            "include_subfolders",
            default=None,
            help="Include files in subfolders when a folder is selected.",
        ),
        click.option(
            "--depth",
            "depth_level",
            type=click.IntRange(min=-1),
            help="How many folder levels to descend (-1 for unlimited).",
        ),
        click.option(
            "-i", "--interactive", is_flag=True, help="Build the edit with interactive prompts."
        ),
        click.option("--dry-run", is_flag=True, help="Preview changes without modifying files."),
        click.option("--json", "json_output", is_flag=True, help="Emit the result as JSON."),
        click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines."),
        click.option("--quiet", is_flag=True, help="Suppress non-error output."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _prepare_batch(
    ctx: click.Context,
    *,
    targets: Sequence[Path],
    include_subfolders: bool | None,
    depth_level: int | None,
    interactive: bool,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> _BatchContext:
    """Load configuration, resolve the selection, and build the document store."""
    config = _load_config(json_output)
    _configure_logging(config.logging.level, (ctx.obj or {}).get("verbose", 0))

    traversal_options = config.traversal
    traversal = FolderTraversal(
        include_subfolders=(
            traversal_options.include_subfolders
            if include_subfolders is None
            else include_subfolders
        ),
        depth_level=traversal_options.depth_level if depth_level is None else depth_level,
        include_hidden=traversal_options.include_hidden,
        follow_symlinks=traversal_options.follow_symlinks,
    )
    store = DocumentStore(
        encoding=config.documents.encoding,
        commit_retries=config.documents.commit_retries,
        dry_run=dry_run,
    )

    source = ctx.get_parameter_source("summary_mode")
    summary_only = summary_mode
    if source is ParameterSource.DEFAULT:
        summary_only = config.cli.summary_default
    batch = _BatchContext(
        config=config,
        store=store,
        documents=[],
        target=", ".join(str(path) for path in targets),
        json_output=json_output,
        quiet=quiet or config.cli.quiet_default,
        summary_only=summary_only,
        interactive=interactive and not json_output,
    )
    try:
        batch.documents = resolve_selection(list(targets), traversal)
    except PropertyError as exc:
        batch.fail(exc)
    batch.emit(
        f"[cyan]{len(batch.documents)} file(s) selected from {escape(batch.target)}.[/cyan]"
    )
    return batch


def _finish(batch: _BatchContext, result: BatchResult) -> None:
    """Emit the batch outcome: failures as warnings, then exactly one summary."""
    if batch.json_output:
        click.echo(json.dumps(result.to_payload(), indent=2))
        return

    if result.failures:
        batch.emit("[red]Some files could not be updated:[/red]", mode="warning")
        for failure in result.failures:
            batch.emit(f"  - {escape(failure.message)}", mode="warning")

    colour = "green" if result.changed else "yellow"
    _emit_message(
        f"[{colour}]{escape(result.summary())}[/{colour}]",
        mode="summary",
        quiet=batch.quiet,
        summary_only=batch.summary_only,
    )


def _confirm_apply(batch: _BatchContext) -> bool:
    if not batch.interactive:
        return True
    if click.confirm(f"Apply changes to {len(batch.documents)} file(s)?", default=True):
        return True
    console.print("[yellow]Cancelled; no files were changed.[/yellow]")
    return False


# Option parsing ---------------------------------------------------------


def _split_typed_key(text: str) -> tuple[str, ValueType | None]:
    key, sep, suffix = text.rpartition(":")
    if sep and suffix.strip().lower() in _TYPE_NAMES:
        return key.strip(), ValueType(suffix.strip().lower())
    return text.strip(), None


def _parse_typed_value(key: str, raw: str, value_type: ValueType) -> Any:
    try:
        return parse_value(raw, value_type)
    except ValueError as exc:
        raise ValidationFailure(f"Invalid value for '{key}': {exc}") from exc


def _parse_prop_option(text: str) -> PropertyDefinition:
    """Parse ``KEY[:TYPE][=VALUE]`` into a property to add."""
    left, sep, raw = text.partition("=")
    key, value_type = _split_typed_key(left)
    value_type = value_type or ValueType.TEXT
    value = _parse_typed_value(key, raw, value_type) if sep else default_value(value_type)
    return PropertyDefinition(key=key, value=value, type=value_type)


def _parse_pair(text: str, *, option: str) -> tuple[str, str]:
    old, sep, new = text.partition("=")
    if not sep or not old.strip() or not new.strip():
        raise ValidationFailure(f"{option} expects OLD=NEW, got '{text}'.")
    return old.strip(), new.strip()


def _build_value_rows(
    sets: Iterable[str],
    renames: Iterable[str],
    properties: dict[str, AggregatedProperty],
) -> list[ValueEditRow]:
    """Combine ``--set`` and ``--rename`` options into one row per key."""
    rows: dict[str, ValueEditRow] = {}
    for text in renames:
        old, new = _parse_pair(text, option="--rename")
        if old in rows:
            raise ValidationFailure(f"'{old}' is renamed more than once.")
        rows[old] = ValueEditRow(key=old, new_key=new, enabled=True, update_value=False)

    for text in sets:
        left, sep, raw = text.partition("=")
        if not sep:
            raise ValidationFailure(f"--set expects KEY[:TYPE]=VALUE, got '{text}'.")
        key, value_type = _split_typed_key(left)
        if value_type is None:
            known = properties.get(key)
            value_type = known.primary_type if known is not None else ValueType.TEXT
        value = _parse_typed_value(key, raw, value_type)
        row = rows.get(key)
        if row is None:
            row = rows[key] = ValueEditRow(key=key, new_key=key, enabled=True)
        elif row.update_value:
            raise ValidationFailure(f"'{key}' is given more than one value.")
        row.update_value = True
        row.type = value_type
        row.value = value
    return list(rows.values())


# Interactive forms ------------------------------------------------------


def _render_pending(editor: EditorState[Any]) -> None:
    """Show the rows that will take part in the batch."""
    table = Table(title="Pending changes", show_lines=False)
    table.add_column("Property")
    table.add_column("Change")
    for row in editor.rows:
        if isinstance(row, RenameRow):
            if row.is_active:
                table.add_row(escape(row.original_key), escape(f"rename to {row.new_key}"))
        elif isinstance(row, ValueEditRow):
            if row.has_effect:
                parts = []
                if row.renamed:
                    parts.append(f"rename to {row.new_key}")
                if row.update_value:
                    parts.append(f"set {row.type.value} {render_value(row.value, row.type)!r}")
                table.add_row(escape(row.key), escape("; ".join(parts)))
        elif row.key:
            table.add_row(
                escape(row.key),
                escape(f"add {row.type.value} {render_value(row.value, row.type)!r}"),
            )
    console.print(table)


def _prompt_value(key: str, value_type: ValueType, current: Any) -> Any:
    while True:
        raw = click.prompt(
            f"Value for '{key}' ({value_type.value})",
            default=render_value(current, value_type),
            show_default=True,
        )
        try:
            return parse_value(raw, value_type)
        except ValueError as exc:
            console.print(f"[red]{escape(str(exc))}[/red]")


def _prompt_type(current: ValueType) -> ValueType:
    choice = click.prompt(
        "Type", type=click.Choice(_TYPE_NAMES), default=current.value, show_default=True
    )
    return ValueType(choice)


def _interactive_add() -> AddSpec:
    editor = add_editor(on_change=_render_pending)
    while True:
        key = click.prompt("Property name (blank to finish)", default="", show_default=False)
        key = key.strip()
        if not key:
            break
        if key == RESERVED_KEY:
            console.print(f"[red]The '{RESERVED_KEY}' property cannot be added here.[/red]")
            continue
        if any(row.key == key for row in editor.rows):
            console.print(f"[red]'{escape(key)}' is already in this form.[/red]")
            continue
        editor.update("", key=key)
        value_type = _prompt_type(ValueType.TEXT)
        row = editor.set_type(key, value_type)
        editor.update(key, value=_prompt_value(key, value_type, row.value))
        editor.append(PropertyDefinition(key=""))
    return AddSpec(properties=editor.rows)


def _interactive_remove(properties: dict[str, AggregatedProperty], preview: int) -> RemoveSpec:
    keys: set[str] = set()
    for prop in sorted_properties(properties):
        sample = ", ".join(format_value(value) for value in prop.values[:preview])
        if len(prop.values) > preview:
            sample += "..."
        if click.confirm(f"Remove '{prop.key}' ({sample})?", default=False):
            keys.add(prop.key)
    return RemoveSpec(keys=keys)


def _interactive_rename(properties: dict[str, AggregatedProperty], add_missing: bool) -> RenameSpec:
    editor = rename_editor(properties, on_change=_render_pending)
    for row in list(editor.rows):
        new_key = click.prompt(f"New name for '{row.original_key}'", default=row.original_key)
        if new_key.strip() and new_key.strip() != row.original_key:
            editor.update(row.original_key, new_key=new_key.strip(), enabled=True)
    add_missing = click.confirm(
        "Add the new name to files without the property?", default=add_missing
    )
    return RenameSpec(rows=editor.rows, add_missing=add_missing)


def _interactive_update(properties: dict[str, AggregatedProperty], add_missing: bool) -> UpdateSpec:
    editor = value_editor(properties, on_change=_render_pending)
    for row in list(editor.rows):
        if not click.confirm(f"Edit '{row.key}'?", default=False):
            continue
        new_key = click.prompt("Property name", default=row.key).strip() or row.key
        update = click.confirm("Change its value?", default=True)
        editor.update(row.key, new_key=new_key, update_value=update, enabled=True)
        if not update:
            continue
        value_type = _prompt_type(row.type)
        if value_type is not row.type:
            editor.set_type(row.key, value_type)
        editor.update(row.key, value=_prompt_value(row.key, value_type, row.value))
    add_missing = click.confirm(
        "Add edited properties to files that lack them?", default=add_missing
    )
    return UpdateSpec(rows=editor.rows, add_missing=add_missing)


# Commands ---------------------------------------------------------------


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="propcmd")
@click.option("-v", "--verbose", count=True, help="Log progress (-v) or debug detail (-vv).")
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """propcmd batch-edits frontmatter properties across Markdown notes.

    Returns:
        None: This function is invoked for its side effects.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("targets", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--subfolders/--no-subfolders",
    "include_subfolders",
    default=None,
    help="Include files in subfolders when a folder is selected.",
)
@click.option(
    "--depth", "depth_level", type=click.IntRange(min=-1), help="Folder levels to descend."
)
@click.option("--json", "json_output", is_flag=True, help="Emit properties as JSON.")
@click.pass_context
def props(
    ctx: click.Context,
    targets: tuple[Path, ...],
    include_subfolders: bool | None,
    depth_level: int | None,
    json_output: bool,
) -> None:
    """List the properties found in TARGETS with their types and values."""
    batch = _prepare_batch(
        ctx,
        targets=targets,
        include_subfolders=include_subfolders,
        depth_level=depth_level,
        interactive=False,
        dry_run=True,
        json_output=json_output,
        summary_mode=False,
        quiet=False,
    )
    properties = sorted_properties(batch.aggregate())

    if json_output:
        payload = {
            "files": len(batch.documents),
            "properties": [prop.model_dump(mode="json") for prop in properties],
        }
        click.echo(json.dumps(payload, indent=2))
        return

    if not properties:
        console.print("[yellow]No properties found in selected files.[/yellow]")
        return

    preview = batch.config.cli.preview_values
    table = Table(title=f"Properties in {len(batch.documents)} file(s)")
    table.add_column("Property")
    table.add_column("Types")
    table.add_column("Files", justify="right")
    table.add_column("Values")
    for prop in properties:
        sample = ", ".join(format_value(value) for value in prop.values[:preview])
        if len(prop.values) > preview:
            sample += "..."
        types = ", ".join(sorted(value_type.value for value_type in prop.types))
        table.add_row(escape(prop.key), types, str(prop.file_count), escape(sample))
    console.print(table)


@cli.command()
@_batch_options
@click.option(
    "-p",
    "--prop",
    "prop_options",
    multiple=True,
    metavar="KEY[:TYPE][=VALUE]",
    help="Property to add; TYPE is one of text, number, checkbox, date, list.",
)
@click.pass_context
def add(ctx: click.Context, prop_options: tuple[str, ...], **options: Any) -> None:
    """Add properties to every file in TARGETS that does not have them yet."""
    batch = _prepare_batch(ctx, **options)
    try:
        if batch.interactive:
            spec = _interactive_add()
        else:
            spec = AddSpec(properties=[_parse_prop_option(text) for text in prop_options])
        spec = spec.validated()
    except PropertyError as exc:
        batch.fail(exc)
        return
    if not _confirm_apply(batch):
        return
    _finish(batch, BatchOrchestrator(batch.store).add(batch.documents, spec))


@cli.command()
@_batch_options
@click.option("-k", "--key", "keys", multiple=True, metavar="KEY", help="Property to remove.")
@click.pass_context
def remove(ctx: click.Context, keys: tuple[str, ...], **options: Any) -> None:
    """Remove properties from every file in TARGETS that has them."""
    batch = _prepare_batch(ctx, **options)
    try:
        if batch.interactive:
            spec = _interactive_remove(batch.aggregate(), batch.config.cli.preview_values)
        else:
            spec = RemoveSpec(keys=set(keys))
        spec = spec.validated()
    except PropertyError as exc:
        batch.fail(exc)
        return
    if not _confirm_apply(batch):
        return
    _finish(batch, BatchOrchestrator(batch.store).remove(batch.documents, spec))


@cli.command()
@_batch_options
@click.option("-k", "--key", "pairs", multiple=True, metavar="OLD=NEW", help="Key to rename.")
@click.option(
    "--add-missing",
    is_flag=True,
    help="Create the new key (empty) in files that lack the old one.",
)
@click.pass_context
def rename(
    ctx: click.Context, pairs: tuple[str, ...], add_missing: bool, **options: Any
) -> None:
    """Rename property keys across TARGETS."""
    batch = _prepare_batch(ctx, **options)
    try:
        if batch.interactive:
            spec = _interactive_rename(batch.aggregate(), add_missing)
        else:
            rows = []
            for text in pairs:
                old, new = _parse_pair(text, option="--key")
                rows.append(RenameRow(original_key=old, new_key=new, enabled=True))
            spec = RenameSpec(rows=rows, add_missing=add_missing)
        spec = spec.validated()
    except PropertyError as exc:
        batch.fail(exc)
        return
    if not _confirm_apply(batch):
        return
    _finish(batch, BatchOrchestrator(batch.store).rename(batch.documents, spec))


@cli.command()
@_batch_options
@click.option(
    "-s",
    "--set",
    "sets",
    multiple=True,
    metavar="KEY[:TYPE]=VALUE",
    help="New value for a property; TYPE defaults to the type already in use.",
)
@click.option(
    "-r",
    "--rename",
    "renames",
    multiple=True,
    metavar="OLD=NEW",
    help="Rename a key before its value is updated.",
)
@click.option(
    "--add-missing",
    is_flag=True,
    help="Add updated properties to files that lack them.",
)
@click.pass_context
def update(
    ctx: click.Context,
    sets: tuple[str, ...],
    renames: tuple[str, ...],
    add_missing: bool,
    **options: Any,
) -> None:
    """Update property values (optionally renaming keys first) across TARGETS."""
    batch = _prepare_batch(ctx, **options)
    try:
        properties = batch.aggregate()
        if batch.interactive:
            spec = _interactive_update(properties, add_missing)
        else:
            rows = _build_value_rows(sets, renames, properties)
            spec = UpdateSpec(rows=rows, add_missing=add_missing)
        spec = spec.validated()
    except PropertyError as exc:
        batch.fail(exc)
        return
    if not _confirm_apply(batch):
        return
    _finish(batch, BatchOrchestrator(batch.store).update(batch.documents, spec))


# Configuration ----------------------------------------------------------


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign ``value`` at a dotted ``path`` inside ``target``.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"Cannot assign into '{segment}' because it is not a mapping.")
        node = child
    node[path[-1]] = value


@cli.group()
def config() -> None:
    """Manage propcmd configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'traversal.depth_level'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    file_data = manager.load_file_overrides()
    try:
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=PropcmdConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.lstrip("+-").startswith("# Last updated:")
    ]
    if len(diff) > 2:
        console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes applied.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=PropcmdConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
