#!/usr/bin/env python
"""Developer CLI for inspecting and converting Apple Notes blobs."""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from applenotes.builder import build
from applenotes.decoding import decode
from applenotes.exceptions import NotesError
from applenotes.protobuf import NOTE_ROOT, default_schema
from applenotes.rendering.converter import NoteConverter
from applenotes.rendering.debug_tools import dump_runs_text
from applenotes.rendering.options import ConvertOptions

app = typer.Typer(help="Decode Apple Notes blobs and convert them to Markdown")
console = Console()


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Inspect NoteStore blobs: decoded trees, attribute runs, Markdown."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True),
                rich_tracebacks=True,
                show_time=True,
                log_time_format="%H:%M:%S",
            )
        ],
    )


def _read_blob(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command("decode")
def decode_blob(
    blob: Path = typer.Argument(..., help="Compressed note or mergeable blob"),
    root: str = typer.Option(NOTE_ROOT, "--root", help="Root message name"),
    raw: bool = typer.Option(False, "--raw", help="Blob is not compressed"),
):
    """Print the decoded message tree as JSON."""
    try:
        tree = decode(_read_blob(blob), default_schema(), root, compressed=not raw)
    except NotesError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    console.print_json(json.dumps(tree.to_dict(), default=lambda b: b.hex()))


@app.command("runs")
def runs(
    blob: Path = typer.Argument(..., help="Compressed note blob"),
):
    """Print every attribute run with the text it covers."""
    try:
        tree = decode(_read_blob(blob), default_schema(), NOTE_ROOT)
    except NotesError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    document = tree.message("document")
    note = document.message("note") if document is not None else None
    if note is None:
        console.print("No note text in this blob")
        return
    console.print(dump_runs_text(note), markup=False, highlight=False)


@app.command("convert")
def convert(
    blob: Path = typer.Argument(..., help="Compressed note blob"),
    root: str = typer.Option(NOTE_ROOT, "--root", help="Root message name"),
    handwriting: Optional[str] = typer.Option(
        None, "--handwriting", help="Handwriting summary to prefix as a callout"
    ),
    omit_first_line: bool = typer.Option(
        False, "--omit-first-line", help="Drop the title line from the body"
    ),
):
    """Convert a note blob to Markdown and list any anomalies."""
    options = ConvertOptions.from_env(
        include_handwriting=handwriting is not None,
        omit_first_line=omit_first_line,
    )
    converter = NoteConverter(options=options)
    metadata = {"identifier": blob.stem, "handwriting_summary": handwriting}
    try:
        result = converter.convert(_read_blob(blob), metadata, root=root)
    except NotesError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(result.markdown, markup=False, highlight=False)
    if result.anomalies:
        table = Table("Kind", "Identifier", "Message")
        for anomaly in result.anomalies:
            table.add_row(anomaly.kind.value, anomaly.identifier or "", anomaly.message)
        console.print(table)


@app.command("structure")
def structure(
    blob: Path = typer.Argument(..., help="Compressed note or mergeable blob"),
    root: str = typer.Option(NOTE_ROOT, "--root", help="Root message name"),
):
    """Print the detected content kind and attachment references."""
    try:
        doc = build(decode(_read_blob(blob), default_schema(), root))
    except NotesError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    console.print(f"Kind: [bold]{doc.kind.value}[/bold]")
    if not doc.attachments:
        console.print("No attachments")
        return
    table = Table("Identifier", "Kind", "UTI")
    for ref in doc.attachments:
        table.add_row(ref.identifier, ref.kind.value, ref.uti or "")
    console.print(table)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
