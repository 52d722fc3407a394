"""
CLI for stubwatch.

Provides command-line interface for watching a project and regenerating
interface files, plus one-shot planning and generation.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from stubwatch.core.config import LoggingConfig, StubwatchConfig, load_config
from stubwatch.core.file_events import ChangeBatch
from stubwatch.core.models import GenerationPlan
from stubwatch.services import WatchService, create_services
from stubwatch.services.generation_pass import PassResult

# Initialize Rich Console
console = Console()

app = typer.Typer(
    name="stubwatch",
    help="Watch a project and regenerate type-interface files on relevant changes",
    add_completion=False,
)


def setup_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """Configure root logging from the logging config section."""
    level = logging.DEBUG if verbose else getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format, force=True)


def get_config(config_path: Optional[Path], verbose: bool = False) -> StubwatchConfig:
    """Load .env, configuration and logging for a command."""
    load_dotenv()
    cfg = load_config(config_path)
    setup_logging(cfg.logging, verbose=verbose)
    return cfg


def _render_plan(plan: GenerationPlan) -> None:
    table = Table(title=f"Generation plan ({plan.scope})", show_lines=False)
    table.add_column("Kind", style="bold")
    table.add_column("Value")

    for name in plan.requested_entities:
        table.add_row("entity", name)
    for path in plan.requested_paths:
        table.add_row("path", path)
    for generator in plan.selected_generators:
        table.add_row("generator", f"[cyan]{generator}[/cyan]")

    console.print(table)


def _render_result(result: PassResult) -> None:
    if not result.relevant:
        console.print("[yellow]No relevant changes; nothing to generate.[/yellow]")
        return
    if result.plan is not None:
        _render_plan(result.plan)
    if result.ran:
        console.print(
            Panel(
                f"Generation finished in {result.duration_ms / 1000:.2f}s",
                title="[bold green]Done[/bold green]",
                border_style="green",
                expand=False,
            )
        )
    elif result.plan is not None and not result.plan.is_actionable():
        console.print("[yellow]Plan has nothing to run.[/yellow]")


def _modified_option():
    return typer.Option(None, "--modified", "-m", help="Modified path (repeatable)")


def _added_option():
    return typer.Option(None, "--added", "-a", help="Added path (repeatable)")


def _removed_option():
    return typer.Option(None, "--removed", "-r", help="Removed path (repeatable)")


def _config_option():
    return typer.Option(None, "--config", "-c", help="Configuration file (.yaml/.json)")


def _root_option():
    return typer.Option(Path("."), "--root", help="Project root")


def _verbose_option():
    return typer.Option(False, "--verbose", "-v", help="Enable debug logging")


@app.command()
def watch(
    path: Path = typer.Argument(Path("."), help="Project directory to watch"),
    config: Optional[Path] = _config_option(),
    debounce_ms: Optional[int] = typer.Option(
        None, "--debounce-ms", help="Quiet period before a batch is processed"
    ),
    exit_on_failure: Optional[bool] = typer.Option(
        None,
        "--exit-on-failure/--keep-watching",
        help="Stop when reload or generation fails",
    ),
    verbose: bool = _verbose_option(),
):
    """Watch a project and regenerate interface files on relevant changes."""
    try:
        cfg = get_config(config, verbose=verbose)
        if debounce_ms is not None:
            cfg.watch.debounce_ms = debounce_ms
        if exit_on_failure is not None:
            cfg.watch.exit_on_failure = exit_on_failure

        container = create_services(project_root=path, config=cfg)
        service = WatchService(
            generation_pass=container.generation_pass,
            file_watcher=container.create_file_watcher(),
            watch_path=container.project_root,
            settings=cfg.watch,
        )

        console.print(f"[bold blue]Watching[/bold blue] {container.project_root} (Ctrl-C to stop)")
        asyncio.run(service.run_forever())
    except KeyboardInterrupt:
        console.print("\n[bold]Stopped.[/bold]")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def plan(
    modified: Optional[list[str]] = _modified_option(),
    added: Optional[list[str]] = _added_option(),
    removed: Optional[list[str]] = _removed_option(),
    root: Path = _root_option(),
    config: Optional[Path] = _config_option(),
    verbose: bool = _verbose_option(),
):
    """Show the generation plan for a set of changed paths without running it."""
    batch = ChangeBatch(
        modified=list(modified or []),
        added=list(added or []),
        removed=list(removed or []),
    )
    try:
        cfg = get_config(config, verbose=verbose)
        container = create_services(project_root=root, config=cfg)
        result = container.generation_pass.plan(batch)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _render_result(result)


@app.command()
def generate(
    modified: Optional[list[str]] = _modified_option(),
    added: Optional[list[str]] = _added_option(),
    removed: Optional[list[str]] = _removed_option(),
    root: Path = _root_option(),
    config: Optional[Path] = _config_option(),
    dry_run: bool = typer.Option(False, "--dry-run", help="Classify but do not generate"),
    verbose: bool = _verbose_option(),
):
    """Run one generation pass for a set of changed paths."""
    batch = ChangeBatch(
        modified=list(modified or []),
        added=list(added or []),
        removed=list(removed or []),
    )
    try:
        cfg = get_config(config, verbose=verbose)
        container = create_services(project_root=root, config=cfg)
        result = container.generation_pass.execute(batch, dry_run=dry_run)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _render_result(result)
    # Relevant change but nothing runnable
    if result.plan is not None and not result.plan.is_actionable():
        raise typer.Exit(1)


@app.command(name="config")
def show_config(
    config: Optional[Path] = _config_option(),
):
    """Print the effective configuration as YAML."""
    try:
        load_dotenv()
        cfg = load_config(config)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(Syntax(cfg.to_yaml(), "yaml", theme="monokai"))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
