"""CLI entry point for Test Intel."""

import dataclasses
import json
import logging
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .config import Config, load_config
from .locators import DuplicateClusterer, filter_scored, score_locators, summarize_health
from .models import HealthStatus, LocatorType, Trend
from .runs import FailureAnalyzer, summarize_runs
from .snapshots import SnapshotFormatError, load_locators, load_runs

console = Console()

STATUS_STYLES = {
    HealthStatus.EXCELLENT: "green",
    HealthStatus.GOOD: "blue",
    HealthStatus.FAIR: "yellow",
    HealthStatus.POOR: "red",
    HealthStatus.CRITICAL: "bold red",
}

TREND_STYLES = {
    Trend.IMPROVING: "[green]↓ improving[/]",
    Trend.WORSENING: "[red]↑ worsening[/]",
    Trend.STABLE: "[dim]→ stable[/]",
}

FORMAT_OPTION = click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["table", "json"]),
    default=None,
    help="Output format (defaults to the configured one)",
)


@click.group()
@click.version_option(package_name="test-intel")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Show engine debug logs")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Test Intel - locator health, duplicate and flakiness analysis."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(Path(config_path) if config_path else None)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command()
@click.argument("locators_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--status", type=click.Choice([s.value for s in HealthStatus]), help="Only show this tier")
@click.option("--type", "locator_type", type=click.Choice([t.value for t in LocatorType]), help="Only show this locator type")
@click.option("--search", "-s", help="Match expression or test name")
@FORMAT_OPTION
@click.pass_context
def health(
    ctx: click.Context,
    locators_file: Path,
    status: str | None,
    locator_type: str | None,
    search: str | None,
    output_format: str | None,
) -> None:
    """Score the health of every locator in a locator index."""
    config: Config = ctx.obj["config"]
    locators = _load(load_locators, locators_file)

    scored = filter_scored(
        score_locators(locators),
        status=HealthStatus(status) if status else None,
        locator_type=LocatorType(locator_type) if locator_type else None,
        search=search,
    )

    if _format(config, output_format) == "json":
        _print_json(scored)
        return

    summary = summarize_health(locators)
    console.print(f"\n[bold blue]🩺 Locator health:[/] {locators_file}\n")

    table = Table(title=f"{len(scored)} of {summary.total_locators} locators")
    table.add_column("Locator", style="cyan", max_width=50)
    table.add_column("Type", style="magenta")
    table.add_column("Tests", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Top recommendation", style="dim", max_width=60)

    for item in scored[: config.output.max_rows]:
        style = STATUS_STYLES[item.health.status]
        table.add_row(
            escape(item.locator.expression),
            item.locator.locator_type.value,
            str(item.locator.usage_count),
            str(item.health.total),
            f"[{style}]{item.health.status.value}[/]",
            item.health.recommendations[0],
        )

    console.print(table)

    console.print("\n[bold]Summary:[/]")
    for tier, count in summary.status_counts.items():
        console.print(f"  • {tier.value.capitalize()}: [{STATUS_STYLES[tier]}]{count}[/]")
    console.print(f"  • Average score: {summary.average_score:.1f}")
    if summary.critical:
        noun = "locator needs" if len(summary.critical) == 1 else "locators need"
        console.print(f"\n[bold red]⚠ {len(summary.critical)} critical {noun} attention[/]")
    console.print()


@main.command()
@click.argument("locators_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--threshold", type=float, default=None, help="Override the similarity threshold (0-100)")
@FORMAT_OPTION
@click.pass_context
def duplicates(
    ctx: click.Context,
    locators_file: Path,
    threshold: float | None,
    output_format: str | None,
) -> None:
    """Find near-duplicate locators and recommend a canonical one."""
    config: Config = ctx.obj["config"]
    locators = _load(load_locators, locators_file)

    clusterer = DuplicateClusterer.from_config(config.duplicates)
    if threshold is not None:
        clusterer.similarity_threshold = threshold

    groups = clusterer.find_duplicates(locators)

    if _format(config, output_format) == "json":
        _print_json(groups)
        return

    console.print(f"\n[bold blue]🔁 Duplicate locators:[/] {locators_file}\n")
    if not groups:
        console.print("[bold green]✓ No duplicate locators found[/]\n")
        return

    for group in groups[: config.output.max_rows]:
        console.print(f"[cyan]{group.id}[/] [dim]({group.similarity:.0f}% similar)[/]")
        for member in group.members:
            marker = "[green]★[/]" if member is group.canonical else " "
            console.print(
                f"  {marker} {member.locator_type.value:<12} {escape(member.expression)} "
                f"[dim]({member.usage_count} tests)[/]"
            )
        console.print(f"  [dim]{group.rationale}[/]\n")

    redundant = sum(len(g.redundant) for g in groups)
    console.print(f"[yellow]{len(groups)} groups, {redundant} locators could be merged[/]")
    console.print("[dim]Merging is not automatic - review each group before rewriting tests[/]\n")


@main.command()
@click.argument("runs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@FORMAT_OPTION
@click.pass_context
def failures(ctx: click.Context, runs_file: Path, output_format: str | None) -> None:
    """Group failed runs by failure category."""
    config: Config = ctx.obj["config"]
    runs = _load(load_runs, runs_file)
    analyses = _analyzer(config).analyze_failures(runs)

    if _format(config, output_format) == "json":
        _print_json(analyses)
        return

    console.print(f"\n[bold blue]🔍 Failure analysis:[/] {runs_file}\n")
    if not analyses:
        console.print("[bold green]✓ No failed runs[/]\n")
        return

    table = Table(title="Failures by category")
    table.add_column("Category", style="yellow")
    table.add_column("Pattern", style="dim", max_width=45)
    table.add_column("Failures", justify="right")
    table.add_column("Tests", style="cyan", max_width=40)
    table.add_column("Spread", justify="right")

    for analysis in sorted(analyses, key=lambda a: a.count, reverse=True):
        table.add_row(
            analysis.category.value,
            analysis.pattern,
            str(analysis.count),
            ", ".join(analysis.affected_tests),
            f"{analysis.flakiness:.0f}",
        )

    console.print(table)
    console.print()


@main.command()
@click.argument("runs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@FORMAT_OPTION
@click.pass_context
def flaky(ctx: click.Context, runs_file: Path, output_format: str | None) -> None:
    """List tests that pass and fail intermittently."""
    config: Config = ctx.obj["config"]
    runs = _load(load_runs, runs_file)
    reports = _analyzer(config).detect_flaky_tests(runs)

    if _format(config, output_format) == "json":
        _print_json(reports)
        return

    console.print(f"\n[bold blue]🎲 Flaky tests:[/] {runs_file}\n")
    if not reports:
        console.print("[bold green]✓ No flaky tests detected[/]\n")
        return

    table = Table(title="Flaky tests")
    table.add_column("Test", style="cyan", max_width=40)
    table.add_column("Runs", justify="right")
    table.add_column("Passed", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Failure rate", justify="right")
    table.add_column("Flakiness", justify="right", style="magenta")
    table.add_column("Last failure", style="dim")

    for report in reports[: config.output.max_rows]:
        last = report.recent_failures[0].started_at.strftime("%Y-%m-%d %H:%M") if report.recent_failures else "-"
        table.add_row(
            report.test_name,
            str(report.total_runs),
            str(report.passed_runs),
            str(report.failed_runs),
            f"{report.failure_rate:.0%}",
            str(report.flakiness_score),
            last,
        )

    console.print(table)
    console.print()


@main.command()
@click.argument("runs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@FORMAT_OPTION
@click.pass_context
def trend(ctx: click.Context, runs_file: Path, output_format: str | None) -> None:
    """Compare the recent failure rate with the previous period."""
    config: Config = ctx.obj["config"]
    runs = _load(load_runs, runs_file)
    result = _analyzer(config).get_failure_trend(runs)

    if _format(config, output_format) == "json":
        _print_json(result)
        return

    console.print(f"\n[bold blue]📈 Failure trend:[/] {TREND_STYLES[result.trend]}")
    console.print(f"  • Recent failure rate: {result.recent_failure_rate:.0%}")
    console.print(f"  • Previous failure rate: {result.previous_failure_rate:.0%}\n")


@main.command()
@click.option("--locators", "locators_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Locator index JSON")
@click.option("--runs", "runs_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Run index JSON")
@click.pass_context
def report(ctx: click.Context, locators_file: Path | None, runs_file: Path | None) -> None:
    """Print a combined JSON report for a workspace snapshot."""
    config: Config = ctx.obj["config"]
    if not locators_file and not runs_file:
        raise click.UsageError("Pass --locators, --runs, or both")

    result: dict[str, Any] = {}

    if locators_file:
        locators = _load(load_locators, locators_file)
        result["health"] = summarize_health(locators)
        result["duplicates"] = DuplicateClusterer.from_config(config.duplicates).find_duplicates(locators)

    if runs_file:
        runs = _load(load_runs, runs_file)
        analyzer = _analyzer(config)
        result["runs"] = summarize_runs(runs)
        result["failures"] = analyzer.analyze_failures(runs)
        result["flaky"] = analyzer.detect_flaky_tests(runs)
        result["trend"] = analyzer.get_failure_trend(runs)

    _print_json(result)


def _load(loader, path: Path):
    """Run a snapshot loader, turning format errors into CLI errors."""
    try:
        return loader(path)
    except SnapshotFormatError as e:
        raise click.ClickException(str(e)) from e


def _analyzer(config: Config) -> FailureAnalyzer:
    return FailureAnalyzer(flakiness=config.flakiness, trend=config.trend)


def _format(config: Config, output_format: str | None) -> str:
    return output_format or config.output.format


def _print_json(value: Any) -> None:
    click.echo(json.dumps(to_jsonable(value), indent=2))


def to_jsonable(value: Any) -> Any:
    """Convert result dataclasses into JSON-compatible structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        data = {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
        # Derived counts are properties, not fields
        for name in ("usage_count", "count"):
            if hasattr(value, name) and name not in data:
                data[name] = getattr(value, name)
        return data
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {to_jsonable(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (frozenset, set)):
        return sorted(to_jsonable(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


if __name__ == "__main__":
    main()
