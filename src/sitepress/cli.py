"""CLI interface for sitepress."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from sitepress.config import SitepressConfig, load_config, merge_cli_overrides
from sitepress.errors import SitepressError
from sitepress.pipeline.site import SitePipeline
from sitepress.site.models import SiteBundle

app = typer.Typer(
    name="sitepress",
    help="Generate static sites from content bundles and publish them with git.",
)

console = Console()

BundleArg = Annotated[
    Path,
    typer.Argument(
        help="JSON file holding the site bundle (site, contents, sections, ...).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from sitepress import __version__

        console.print(f"sitepress {__version__}")
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a sitepress TOML config file."),
    ] = None,
    workspace: Annotated[
        Optional[Path],
        typer.Option("--workspace", "-w", help="Workspace root holding per-site directories."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Sitepress - static site generation and git publishing."""
    config = load_config(config_path)
    config = merge_cli_overrides(
        config,
        workspace_directory=str(workspace) if workspace else None,
        log_level="DEBUG" if verbose else None,
    )
    _setup_logging(config.logging.level)
    ctx.obj = config


def _load_bundle(path: Path) -> SiteBundle:
    try:
        return SiteBundle.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        console.print(f"[red]Error:[/red] Invalid bundle {path}: {escape(str(exc))}")
        raise typer.Exit(1)


def _pipeline(ctx: typer.Context) -> SitePipeline:
    config: SitepressConfig = ctx.obj
    return SitePipeline.from_config(config)


def _print_errors(errors: list[str]) -> None:
    for error in errors:
        console.print(f"  [yellow]warning:[/yellow] {error}")


@app.command()
def generate(ctx: typer.Context, bundle_path: BundleArg) -> None:
    """Render a site bundle into <workspace>/<site>/html."""
    bundle = _load_bundle(bundle_path)
    try:
        result = _pipeline(ctx).generate(bundle)
    except SitepressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print(f"[green]{result.summary()}[/green]")
    _print_errors(result.errors)


@app.command()
def publish(ctx: typer.Context, bundle_path: BundleArg) -> None:
    """Regenerate a site and push it to its publish branch."""
    bundle = _load_bundle(bundle_path)
    try:
        result = _pipeline(ctx).publish(bundle)
    except SitepressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if result.no_changes:
        console.print("[yellow]Nothing to publish.[/yellow]")
        return
    console.print(f"[bold green]Published![/bold green] {result.commit_url}")


@app.command()
def plan(ctx: typer.Context, bundle_path: BundleArg) -> None:
    """Show what a publish would add, modify and delete."""
    bundle = _load_bundle(bundle_path)
    try:
        result = _pipeline(ctx).plan(bundle)
    except SitepressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    console.print(f"[bold]{result.summary}[/bold]")
    for label, paths, style in (
        ("+", result.added, "green"),
        ("~", result.modified, "yellow"),
        ("-", result.deleted, "red"),
    ):
        for path in paths:
            console.print(f"  [{style}]{label} {path}[/{style}]")


@app.command()
def backup(ctx: typer.Context, bundle_path: BundleArg) -> None:
    """Write markdown and meta sources and push them to the backup branch."""
    bundle = _load_bundle(bundle_path)
    try:
        result = _pipeline(ctx).backup(bundle)
    except SitepressError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    _print_errors(result.errors)
    if result.publish.no_changes:
        console.print("[yellow]Nothing to back up.[/yellow]")
        return
    console.print(f"[bold green]Backed up![/bold green] {result.publish.commit_url}")


if __name__ == "__main__":
    app()
