"""componentmeta CLI for extracting component library metadata."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config import Settings, load_settings
from ..errors import MetaError
from ..logging import configure_logging
from ..models.records import ComponentLibraryMeta
from ..models.serialize import library_to_dict, single_component_to_dict
from ..project import create_session

console = Console()
app = typer.Typer(add_completion=False, no_args_is_help=True)


def _resolve_settings(config_path: Optional[Path], root: Optional[Path]) -> Settings:
    settings = load_settings(config_path)
    if root:
        settings.root_path = Path(root).expanduser().resolve()
    return settings


def _run(settings: Settings, entry: Optional[Path], component: Optional[str] = None) -> Any:
    async def extract() -> Any:
        with create_session(settings, entry) as session:
            if component is not None:
                return await session.extract_component(component)
            return await session.extract()

    return asyncio.run(extract())


@app.command()
def extract(
    entry: Optional[Path] = typer.Argument(None, help="Entry file exporting the components"),
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Project root"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to componentmeta.yaml"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
    component: Optional[str] = typer.Option(
        None, "--component", help="Extract only this component and the types it uses"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write log records to this file"),
):
    """Extract component metadata as JSON."""
    configure_logging(verbose=verbose, log_file=log_file)
    try:
        settings = _resolve_settings(config, root)
        meta = _run(settings, entry, component)
    except MetaError as exc:
        console.print(f"[red]Extraction failed:[/red] {exc}")
        raise typer.Exit(1)

    if component is not None:
        payload = json.dumps(single_component_to_dict(meta), indent=2)
        summary = f"{component} with {len(meta.types)} types"
    else:
        payload = json.dumps(library_to_dict(meta), indent=2)
        summary = (
            f"{len(meta.components)} components, "
            f"{len(meta.functions)} functions, {len(meta.types)} types"
        )
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload + "\n", encoding="utf-8")
    console.print(f"[green]Wrote[/green] {summary} to {output}")


@app.command()
def components(
    entry: Optional[Path] = typer.Argument(None, help="Entry file exporting the components"),
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Project root"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to componentmeta.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write log records to this file"),
):
    """List the components of a library with their member counts."""
    configure_logging(verbose=verbose, log_file=log_file)
    try:
        settings = _resolve_settings(config, root)
        meta: ComponentLibraryMeta = _run(settings, entry)
    except MetaError as exc:
        console.print(f"[red]Extraction failed:[/red] {exc}")
        raise typer.Exit(1)

    if not meta.components:
        console.print("[yellow]No components found[/yellow]")
        return

    table = Table(title="Components")
    table.add_column("Name", style="cyan")
    table.add_column("Kind")
    table.add_column("Props", justify="right")
    table.add_column("Events", justify="right")
    table.add_column("Slots", justify="right")
    table.add_column("Exposed", justify="right")

    for name, component in sorted(meta.components.items()):
        table.add_row(
            name,
            component.type.name.lower(),
            str(len(component.props)),
            str(len(component.events)),
            str(len(component.slots)),
            str(len(component.exposed)),
        )

    console.print(table)


if __name__ == "__main__":
    app()
