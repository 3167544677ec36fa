"""CLI entry point exposing the FileStore operations."""

from __future__ import annotations

import importlib
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import structlog
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:  # pragma: no cover - typing only
    import typer
    from typer import Typer as TyperType
else:  # pragma: no cover - runtime fallback for typing
    typer = importlib.import_module("typer")
    TyperType = Any

from filestore.core.constants import ENV_ROOT
from filestore.core.errors import FileStoreError
from filestore.core.schemas import DirectoryListing
from filestore.core.settings import StoreSettings
from filestore.core.store import FileStore

app: TyperType = typer.Typer(
    help="Sandboxed, atomic file storage rooted at a single directory.",
    no_args_is_help=True,
)

RootOption = Annotated[
    Path | None,
    typer.Option("--root", envvar=ENV_ROOT, help="Storage root directory."),
]
MaxSizeOption = Annotated[
    int | None,
    typer.Option("--max-file-size", help="Maximum file size in bytes."),
]
VerboseFlag = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log every operation to stderr."),
]
PathArg = Annotated[str, typer.Argument(help="Path relative to the storage root.")]
ContentOption = Annotated[
    str | None,
    typer.Option("--content", "-c", help="File content (read from stdin if omitted)."),
]
StartOption = Annotated[
    int | None,
    typer.Option("--start", help="First line to show (1-based, default 1)."),
]
EndOption = Annotated[
    int,
    typer.Option("--end", help="Last line to show; -1 reads to the end."),
]
OverwriteFlag = Annotated[
    bool,
    typer.Option("--overwrite", help="Replace an existing destination file."),
]


def _cli_logger(verbose: bool) -> Any:
    """Build a structlog logger writing human-readable lines to stderr."""
    level = logging.INFO if verbose else logging.ERROR
    return structlog.wrap_logger(
        structlog.PrintLogger(file=sys.stderr),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )


def _fail(message: str) -> typer.Exit:
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    return typer.Exit(code=1)


def _store(ctx: typer.Context) -> FileStore:
    """Open the store on first use so ``--help`` works without a root."""
    options: dict[str, Any] = ctx.obj
    store: FileStore | None = options.get("store")
    if store is None:
        try:
            settings = StoreSettings.from_env(
                root=options["root"], max_file_size=options["max_file_size"]
            )
            store = FileStore.from_settings(settings, logger=_cli_logger(options["verbose"]))
        except (ValueError, ValidationError) as exc:
            raise _fail(str(exc)) from exc
        except FileStoreError as exc:
            raise _fail(exc.message) from exc
        options["store"] = store
    return store


def main(
    ctx: typer.Context,
    root: RootOption = None,
    max_file_size: MaxSizeOption = None,
    verbose: VerboseFlag = False,
) -> None:
    """Sandboxed, atomic file storage rooted at a single directory."""
    ctx.obj = {"root": root, "max_file_size": max_file_size, "verbose": verbose}


def _print_listing(listing: DirectoryListing) -> None:
    table = Table(title=listing.path, show_lines=False)
    table.add_column("Name", style="bold")
    table.add_column("Kind")
    table.add_column("Size", justify="right")
    for entry in listing.entries:
        name = entry.name + "/" if entry.kind == "directory" else entry.name
        size = f"{entry.size:,}" if entry.size is not None else ""
        table.add_row(name, entry.kind, size)
    Console().print(table)


def view(
    ctx: typer.Context,
    path: PathArg = ".",
    start: StartOption = None,
    end: EndOption = -1,
) -> None:
    """Print a file's content or list a directory."""
    view_range = None
    if start is not None or end != -1:
        view_range = (1 if start is None else start, end)
    try:
        result = _store(ctx).view(path, view_range=view_range)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc

    if isinstance(result, DirectoryListing):
        _print_listing(result)
    elif result.text is not None:
        typer.echo(result.text, nl=False)
    else:
        sys.stdout.buffer.write(result.data)
        sys.stdout.flush()


def create(ctx: typer.Context, path: PathArg, content: ContentOption = None) -> None:
    """Create a new file."""
    data: str | bytes = content if content is not None else sys.stdin.buffer.read()
    try:
        _store(ctx).create(path, data)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc
    typer.secho(f"Created {path}", fg=typer.colors.GREEN)


def str_replace(
    ctx: typer.Context,
    path: PathArg,
    old: Annotated[str, typer.Argument(help="Exact text to replace (must occur once).")],
    new: Annotated[str, typer.Argument(help="Replacement text.")],
) -> None:
    """Replace the single occurrence of OLD with NEW."""
    try:
        _store(ctx).str_replace(path, old, new)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc
    typer.secho(f"Edited {path}", fg=typer.colors.GREEN)


def insert(
    ctx: typer.Context,
    path: PathArg,
    line_number: Annotated[int, typer.Argument(help="Insert after this line (0 = top).")],
    text: Annotated[str, typer.Argument(help="Text to insert.")],
) -> None:
    """Insert TEXT after line LINE_NUMBER."""
    try:
        _store(ctx).insert(path, line_number, text)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc
    typer.secho(f"Inserted into {path} at line {line_number}", fg=typer.colors.GREEN)


def delete(ctx: typer.Context, path: PathArg) -> None:
    """Delete a file or directory tree."""
    try:
        _store(ctx).delete(path)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc
    typer.secho(f"Deleted {path}", fg=typer.colors.GREEN)


def rename(
    ctx: typer.Context,
    old_path: PathArg,
    new_path: Annotated[str, typer.Argument(help="Destination path.")],
    overwrite: OverwriteFlag = False,
) -> None:
    """Move OLD_PATH to NEW_PATH."""
    try:
        _store(ctx).rename(old_path, new_path, overwrite=overwrite)
    except FileStoreError as exc:
        raise _fail(exc.message) from exc
    typer.secho(f"Renamed {old_path} -> {new_path}", fg=typer.colors.GREEN)


def run_cli(args: Sequence[str] | None = None) -> None:
    app(args=args)


app.callback()(main)
app.command("view")(view)
app.command("create")(create)
app.command("str-replace")(str_replace)
app.command("insert")(insert)
app.command("delete")(delete)
app.command("rename")(rename)
