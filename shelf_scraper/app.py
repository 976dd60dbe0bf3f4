"""Typer CLI entrypoint for shelf-scraper."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ConfigRepository, SourceConfig
from .engine.exporter import JsonStreamExporter
from .logging_conf import available_logs, configure_logging, log_dir, resolve_log, tail_log
from .models import FetchResult
from .orchestrator import Orchestrator

app = typer.Typer(
    help="Fetch paginated catalog listings and print deduplicated entities as JSON.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
source_app = typer.Typer(name="source", help="Catalog source commands.", no_args_is_help=True)
log_app = typer.Typer(name="log", help="Log viewing commands.", no_args_is_help=True)

# stdout carries the exported JSON, so all human output goes to stderr
console = Console(stderr=True)


@dataclass
class AppState:
    repository: ConfigRepository
    orchestrator: Orchestrator


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    orchestrator = Orchestrator(repository, verbose=verbose)
    return AppState(repository=repository, orchestrator=orchestrator)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _render_summary_table(source_name: str, result: FetchResult, exported: int) -> Table:
    table = Table(title=f"Run summary · {source_name}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", justify="right")
    summary = result.summary
    table.add_row("Pages", str(summary.get("pages", 0)))
    table.add_row("Failed pages", str(summary.get("pages_failed", 0)))
    table.add_row("Rows", str(summary.get("rows", 0)))
    table.add_row("Failed rows", str(summary.get("rows_failed", 0)))
    table.add_row("Duplicate products", str(summary.get("duplicate_products", 0)))
    table.add_row("Products", str(len(result.products)))
    table.add_row("Price points", str(len(result.price_points)))
    table.add_row("Vendors", str(len(result.vendors)))
    table.add_row("Exported", str(exported))
    return table


def _render_sources_table(sources: Sequence[SourceConfig]) -> Table:
    table = Table(title=f"Catalog sources · {len(sources)}", box=box.SIMPLE_HEAD)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Retailer", style="magenta")
    table.add_column("Parallelism", justify="right")
    table.add_column("Page size", justify="right")
    table.add_column("Delay (s)", justify="right")
    table.add_column("Pages", justify="right")
    table.add_column("Endpoint", style="dim", overflow="fold")
    for source in sources:
        table.add_row(
            source.source_name,
            source.retailer_id,
            str(source.fetch.parallelism),
            str(source.fetch.page_size),
            f"{source.fetch.delay:g}",
            str(len(source.fetch.pages)),
            source.endpoint,
        )
    return table


app.add_typer(source_app, name="source")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("fetch", help="Fetch a catalog source and print price points, then products, as JSON.")
def fetch(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Source name (defaults to the global default source)."),
    parallel: Optional[int] = typer.Option(None, "--parallel", "-p", help="Pages in flight at once."),
    page_size: Optional[int] = typer.Option(None, "--page-size", help="Rows requested per page."),
    delay: Optional[float] = typer.Option(None, "--delay", help="Seconds each worker waits before taking the next page."),
    pages: Optional[str] = typer.Option(None, "--pages", help="Page spec, e.g. 1-500 or 1-3,7."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file instead of stdout."),
    save: bool = typer.Option(False, "--save", help="Write JSON into the outputs directory."),
    include_vendors: bool = typer.Option(False, "--include-vendors", help="Also export vendors."),
) -> None:
    state = _get_state(ctx)
    overrides = {"parallelism": parallel, "page_size": page_size, "delay": delay, "pages": pages}
    try:
        result = state.orchestrator.run_source(name, overrides)
    except FileNotFoundError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        console.print(f"[red]Invalid fetch configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    source_name = name or state.orchestrator.global_config.default_source
    exporter: JsonStreamExporter
    if output is not None:
        exporter = JsonStreamExporter.to_file(output)
    elif save:
        global_config = state.repository.load_global_config()
        exporter = JsonStreamExporter.for_run(Path(global_config.outputs_dir), source_name)
    else:
        exporter = JsonStreamExporter()
    try:
        exported = exporter.export_result(result, include_vendors=include_vendors)
    finally:
        exporter.close()

    console.print(_render_summary_table(source_name, result, exported))
    if exporter.path is not None:
        console.print(f"Saved to [green]{exporter.path}[/green]")


@source_app.command("list", help="List configured and built-in catalog sources.")
def source_list(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    sources = state.repository.list_sources()
    if not sources:
        console.print("No catalog sources configured.", style="yellow")
        return
    console.print(_render_sources_table(sources))


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    paths = list(available_logs())
    if not paths:
        console.print("No log files yet.", style="yellow")
        return
    base = log_dir()
    for path in paths:
        console.print(str(path.relative_to(base)))


@log_app.command("show", help="Show the tail of a log file.")
def log_show(
    name: str = typer.Argument("scraper", help="Log name: scraper, error or a source name."),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines to show."),
) -> None:
    content = tail_log(resolve_log(name), lines)
    if not content:
        console.print(f"No entries in log '{name}'.", style="yellow")
        raise typer.Exit(code=1)
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
