"""
Catalog Build Orchestrator

Scans the model directory, assembles the catalog and writes data/models.json.
Also hosts the command line interface.
"""

import os
import tempfile
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
import typer

from utils.validation import Catalog, load_catalog, validate_catalog_file

from .assemble import assemble_catalog
from .scan import ScanError, scan_model_directory

console = Console()
app = typer.Typer(help="WaytoAR model catalog builder")


@dataclass
class ManifestConfig:
    """Configuration for a catalog build."""
    model_dir: Path = Path("model")
    output_file: Path = Path("data/models.json")
    # Prefix for paths in the catalog, relative to the gallery page
    path_prefix: str = "model"
    write_output: bool = True


def write_catalog(catalog: Catalog, output_file: Path) -> Path:
    """
    Write the catalog atomically.

    The JSON goes to a temporary file in the same directory which then
    replaces the target, so readers never see a partial catalog.
    """
    output_file.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".models-", suffix=".json", dir=output_file.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(catalog.to_json())
            f.write("\n")
        os.replace(tmp_name, output_file)
    except Exception:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return output_file


def build_catalog(
    config: Optional[ManifestConfig] = None,
    generated_at: Optional[datetime] = None,
) -> Tuple[Catalog, List[str]]:
    """
    Run the full build: scan, assemble and (optionally) write.

    Args:
        config: Build configuration
        generated_at: Override for the generation timestamp

    Returns:
        Tuple of (catalog, list_of_warnings)
    """
    config = config or ManifestConfig()
    start = time.time()

    groups = scan_model_directory(config.model_dir, config.path_prefix)
    catalog, warnings = assemble_catalog(groups, generated_at, config.path_prefix)

    for warning in warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if config.write_output:
        write_catalog(catalog, config.output_file)
        console.print(f"[green]Wrote {catalog.total} models -> {config.output_file}[/green]")

    console.print(f"  Build time: {time.time() - start:.2f}s")
    return catalog, warnings


@app.command("generate")
def generate(
    model_dir: Path = typer.Option(Path("model"), help="Directory with .usdz/.glb/thumbnail files"),
    output: Path = typer.Option(Path("data/models.json"), help="Catalog output file"),
    path_prefix: str = typer.Option("model", help="Path prefix used in the catalog"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Don't write the catalog"),
):
    """Generate the model catalog."""
    config = ManifestConfig(
        model_dir=model_dir,
        output_file=output,
        path_prefix=path_prefix,
        write_output=not dry_run,
    )

    try:
        catalog, warnings = build_catalog(config)
    except ScanError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[bold red]Failed to generate the catalog:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        f"[bold green]Catalog updated[/bold green]\n\n"
        f"Models: {catalog.total}\n"
        f"Warnings: {len(warnings)}\n"
        f"Output: {output if not dry_run else '(dry run)'}",
        border_style="green"
    ))


@app.callback(invoke_without_command=True)
def default(ctx: typer.Context):
    """WaytoAR model catalog builder. Runs generate when no command is given."""
    if ctx.invoked_subcommand is None:
        generate(
            model_dir=Path("model"),
            output=Path("data/models.json"),
            path_prefix="model",
            dry_run=False,
        )


@app.command("validate")
def validate(
    catalog_path: Path = typer.Argument(Path("data/models.json"), help="Catalog file to validate"),
    site_root: Optional[Path] = typer.Option(None, help="Directory catalog paths resolve against"),
):
    """Validate a catalog and the files it references."""
    is_valid, _, errors = validate_catalog_file(catalog_path, site_root)

    if not is_valid:
        console.print("[red]Validation failed:[/red]")
        for error in errors:
            console.print(f"  [red]• {error}[/red]")
        raise typer.Exit(1)
    console.print("[green]Catalog is valid![/green]")


@app.command("list")
def list_models(
    catalog_path: Path = typer.Argument(Path("data/models.json"), help="Catalog file"),
):
    """Print the models in a catalog."""
    try:
        catalog = load_catalog(catalog_path)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"{catalog.total} models (generated {catalog.generated_at})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("USDZ")
    table.add_column("GLB")
    table.add_column("Size", justify="right")
    for item in catalog.items:
        table.add_row(
            item.id,
            item.display_name,
            "✓" if item.model_path else "-",
            "✓" if item.android_model_path else "-",
            item.size.human_readable,
        )
    console.print(table)


@app.command("resolve")
def resolve(
    model_id: str = typer.Argument(..., help="Model id"),
    user_agent: str = typer.Option("", "--user-agent", "-u", help="Browser user-agent string"),
    page_url: str = typer.Option("https://localhost/", help="Gallery page URL"),
    catalog_path: Path = typer.Option(Path("data/models.json"), help="Catalog file"),
):
    """Show what the AR button does for a model in a given browser."""
    from arviewer.availability import resolve_availability
    from arviewer.environment import classify_environment
    from arviewer.launch import build_launch_target

    try:
        catalog = load_catalog(catalog_path)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    entry = catalog.find(model_id)
    if entry is None:
        console.print(f"[bold red]Error:[/bold red] Unknown model: {model_id}")
        raise typer.Exit(1)

    env = classify_environment(user_agent)
    result = resolve_availability(entry, env)

    console.print(f"Platform: [blue]{env.platform.value}[/blue]  "
                  f"Quick Look: {env.supports_quick_look}  "
                  f"Scene Viewer: {env.supports_scene_viewer}")
    console.print(f"Button: {result.label}")
    if result.hint:
        console.print(f"  [yellow]{result.hint}[/yellow]")

    if result.available:
        target = build_launch_target(result, entry, env, page_url, title=entry.display_name)
        console.print(f"[green]Launch ({target.target}):[/green] {target.href}")


if __name__ == "__main__":
    app()
