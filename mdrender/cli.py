"""CLI entry point for mdrender."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from mdrender.config import MdRenderConfig, load_config
from mdrender.config.loader import DEFAULT_CONFIG_TEMPLATE
from mdrender.document import DocumentError
from mdrender.pipeline import check_file, process_file, validate_languages
from mdrender.renderers import UnsupportedLanguageError, supported_languages

app = typer.Typer(
    name="mdrender",
    help="Render diagram code blocks in markdown files to images.",
)

config_app = typer.Typer(help="Manage mdrender configuration.")
app.add_typer(config_app, name="config")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _configure_logging(cfg: MdRenderConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else _LOG_LEVELS[cfg.log_level]
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(show_path=False, markup=False)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to mdrender.yaml")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log at debug level")
    ] = False,
) -> None:
    """Global options."""
    try:
        cfg = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(cfg, verbose)
    ctx.obj = {"config_path": config, "config": cfg}


def _resolve_config(
    ctx: typer.Context,
    languages: str | None,
    output_dir: str | None = None,
    link_prefix: str | None = None,
) -> MdRenderConfig:
    """Reload the config with command-line flags applied and validate languages."""
    state = ctx.obj or {}
    try:
        cfg = load_config(
            state.get("config_path"),
            {"languages": languages, "output_dir": output_dir, "link_prefix": link_prefix},
        )
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not cfg.render.languages:
        rprint(
            "[red]Error:[/red] --languages is required "
            f"(supported: {', '.join(supported_languages())})"
        )
        raise typer.Exit(1)
    try:
        validate_languages(cfg.render.languages)
    except UnsupportedLanguageError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    return cfg


@app.command()
def render(
    ctx: typer.Context,
    files: Annotated[list[Path], typer.Argument(help="Markdown files to render")],
    output_dir: Annotated[
        str | None,
        typer.Option(
            "--output-dir",
            help="Directory to render images to. Defaults to the directory of each input file.",
        ),
    ] = None,
    languages: Annotated[
        str | None,
        typer.Option(
            "--languages",
            "-l",
            help="(required) Languages to render, comma-separated. Supported: dot, plantuml, pikchr.",
        ),
    ] = None,
    link_prefix: Annotated[
        str | None,
        typer.Option("--link-prefix", help="Prefix to use when linking to rendered files"),
    ] = None,
) -> None:
    """Render code blocks in markdown files."""
    cfg = _resolve_config(ctx, languages, output_dir, link_prefix)

    total = 0
    for path in files:
        try:
            result = process_file(path, cfg)
        except DocumentError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        total += len(result.rendered)
        if result.changed:
            rprint(f"[green]Updated[/green] {path} ({len(result.rendered)} rendered)")
        else:
            rprint(f"[dim]Unchanged[/dim] {path}")

    rprint(f"\n[bold]{total}[/bold] block(s) rendered across {len(files)} file(s).")


@app.command()
def check(
    ctx: typer.Context,
    files: Annotated[list[Path], typer.Argument(help="Markdown files to check")],
    languages: Annotated[
        str | None,
        typer.Option("--languages", "-l", help="Languages to check, comma-separated"),
    ] = None,
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
    fail_on_stale: Annotated[
        bool, typer.Option("--fail-on-stale", help="Exit 1 if stale blocks found")
    ] = False,
) -> None:
    """Report blocks whose rendered image is missing or out of date."""
    cfg = _resolve_config(ctx, languages)

    stale = []
    for path in files:
        try:
            stale.extend(check_file(path, cfg.render.languages))
        except DocumentError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)

    if ci:
        # Plain text, one stale block per line
        for block in stale:
            typer.echo(f"STALE {block.path}:{block.line} {block.filename}")
        if not stale:
            typer.echo("OK: all images up to date")
    else:
        if stale:
            table = Table(title="Stale Blocks")
            table.add_column("File", style="cyan")
            table.add_column("Line", justify="right")
            table.add_column("Language", style="green")
            table.add_column("Image", style="dim")
            table.add_column("Status", justify="center")
            for block in stale:
                status = "[red]stale[/red]" if block.recorded_hash else "[yellow]missing[/yellow]"
                table.add_row(block.path, str(block.line), block.language, block.filename, status)
            rprint(table)
            rprint(f"\n[red]{len(stale)} stale block(s) found.[/red]")
        else:
            rprint("[green]All images up to date.[/green]")

    if fail_on_stale and stale:
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show current resolved configuration."""
    cfg: MdRenderConfig = (ctx.obj or {}).get("config") or MdRenderConfig()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default mdrender.yaml in current directory."""
    target = Path("mdrender.yaml")
    if target.exists() and not force:
        rprint("[yellow]mdrender.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
