"""Command line interface for computing and benchmarking Cramér's V."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

import rich.traceback
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TimeElapsedColumn
from rich.table import Table

from . import bench as bench_module
from . import report as report_module
from .config import load_bench_config
from .correlations import compute_associations
from .io import LoadConfig, load_columns, load_records
from .registry import default_registry
from .stats import InvalidInputError, contingency_table, cramer_v_from_table

rich.traceback.install(show_locals=False)

app = typer.Typer(help="Cramér's V association statistic: compute, tabulate and benchmark.")
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Configure logging for all commands."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _resolve_path(path: Path | str) -> Path:
    """Resolve a string or path to an absolute Path."""
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"Path does not exist: {resolved}")
    return resolved


@app.command()
def compute(
    source: Path = typer.Argument(..., help="CSV, JSON or JSONL file holding the label columns."),
    x: str = typer.Option(..., "--x", help="Column holding the first categorical variable."),
    y: str = typer.Option(..., "--y", help="Column holding the second categorical variable."),
    strict: bool = typer.Option(
        False, "--strict/--no-strict", help="Fail instead of printing NaN for degenerate tables."
    ),
    show_table: bool = typer.Option(False, "--show-table", help="Print the contingency table."),
    max_records: Optional[int] = typer.Option(None, help="Only read the first N records."),
) -> None:
    """Compute Cramér's V between two columns of a record file."""

    source_path = _resolve_path(source)
    try:
        x_values, y_values = load_columns(source_path, x, y, LoadConfig(max_records=max_records))
        table = contingency_table(x_values, y_values)
        value = cramer_v_from_table(table.counts, strict=strict)
    except (InvalidInputError, KeyError, ValueError) as error:
        raise typer.BadParameter(str(error)) from error

    if show_table:
        rendered = Table(title=f"{x} x {y}")
        rendered.add_column(x)
        for column in table.columns:
            rendered.add_column(str(column), justify="right")
        for label, counts in zip(table.rows, table.counts):
            rendered.add_row(str(label), *(str(int(count)) for count in counts))
        console.print(rendered)

    console.print(f"Cramér's V ({x}, {y}) over {table.total} records: [bold]{value:.6f}[/bold]")


@app.command()
def matrix(
    source: Path = typer.Argument(..., help="CSV, JSON or JSONL record file."),
    columns: Optional[List[str]] = typer.Option(
        None, "--column", "-c", help="Restrict to these columns (repeatable)."
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the matrix as JSON."),
    max_records: Optional[int] = typer.Option(None, help="Only read the first N records."),
) -> None:
    """Compute pairwise Cramér's V across the categorical columns of a record file."""

    source_path = _resolve_path(source)
    try:
        records = load_records(source_path, LoadConfig(max_records=max_records))
        associations = compute_associations(records, columns or None)
    except (KeyError, ValueError) as error:
        raise typer.BadParameter(str(error)) from error

    if output is not None:
        destination = output.expanduser().resolve()
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(json.dumps(associations, indent=2))
        console.print(f"Association matrix written to [green]{destination}[/green]")
    else:
        console.print_json(data=associations)


@app.command()
def bench(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Benchmark YAML config."),
    sizes: Optional[List[int]] = typer.Option(None, "--size", help="Sample size (repeatable)."),
    repeats: Optional[int] = typer.Option(None, help="Timed calls per implementation and size."),
    seed: Optional[int] = typer.Option(None, help="Seed for label generation."),
    implementations: Optional[List[str]] = typer.Option(
        None, "--impl", help="Implementation name to run (repeatable)."
    ),
    plugins: Optional[List[str]] = typer.Option(
        None,
        "--plugin",
        help="Extra implementation as NAME=package.module.func (repeatable).",
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write results JSON."),
) -> None:
    """Time the registered implementations against each other."""

    registry = default_registry()
    for entry in plugins or []:
        name, sep, dotted = entry.partition("=")
        if not sep or not name or not dotted:
            raise typer.BadParameter(f"Expected NAME=package.module.func, got {entry!r}")
        try:
            registry.register_entrypoint(name, dotted)
        except (ImportError, AttributeError, TypeError, ValueError) as error:
            raise typer.BadParameter(f"Cannot load {dotted}: {error}") from error

    try:
        config = load_bench_config(
            _resolve_path(config_path) if config_path is not None else None,
            sizes=list(sizes) if sizes else None,
            repeats=repeats,
            seed=seed,
            implementations=list(implementations) if implementations else None,
        )
        for name in [*config.implementations, config.reference]:
            registry.get(name)
    except (KeyError, ValueError) as error:
        raise typer.BadParameter(str(error)) from error

    total = len(config.sizes) * len(config.implementations)
    with Progress(
        SpinnerColumn(),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task("Benchmarking", total=total)
        try:
            results = bench_module.run_benchmark(
                config,
                registry=registry,
                progress_callback=lambda done: progress.update(task_id, completed=done),
            )
        except bench_module.BenchmarkError as error:
            progress.stop()
            console.print(f"[red]Benchmark aborted:[/red] {error}")
            raise typer.Exit(1) from error

    summary = bench_module.summarise(results)
    console.print(_summary_table(summary))

    if output is not None:
        destination = output.expanduser().resolve()
        destination.parent.mkdir(parents=True, exist_ok=True)
        document: dict[str, Any] = {"config": config.to_dict(), "results": summary}
        destination.write_text(json.dumps(document, indent=2))
        console.print(f"Benchmark results written to [green]{destination}[/green]")


@app.command()
def report(
    results_json: Path = typer.Argument(..., help="Results JSON produced by the bench command."),
    output_html: Path = typer.Option(
        Path("report.html"), "--output", "-o", help="Path to write HTML report."
    ),
) -> None:
    """Render an HTML report from a benchmark results JSON artifact."""

    try:
        results = json.loads(_resolve_path(results_json).read_text())
        html = report_module.render_report(results)
    except (KeyError, ValueError) as error:
        raise typer.BadParameter(f"Malformed results JSON: {error}") from error
    output_html = output_html.expanduser().resolve()
    output_html.parent.mkdir(parents=True, exist_ok=True)
    output_html.write_text(html, encoding="utf-8")
    console.print(f"Report written to [green]{output_html}[/green]")


def _summary_table(summary: list[dict[str, Any]]) -> Table:
    table = Table(title="Cramér's V benchmark")
    table.add_column("n", justify="right")
    table.add_column("implementation")
    table.add_column("best (ms)", justify="right")
    table.add_column("mean (ms)", justify="right")
    table.add_column("relative", justify="right")
    for row in summary:
        table.add_row(
            str(row["size"]),
            row["implementation"],
            f"{row['best'] * 1000:.3f}",
            f"{row['mean'] * 1000:.3f}",
            f"{row['relative']:.2f}" if row["relative"] is not None else "-",
        )
    return table


def main() -> None:
    """Entrypoint for the ``cramerv`` console script."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
