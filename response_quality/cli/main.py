"""Response quality CLI using Typer and Rich.

Commands read a JSON payload of the form::

    {"response": {"id": "...", "content": "..."},
     "context": {...},
     "options": {...}}

where ``context`` and ``options`` are optional.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from response_quality.analyzers.extraction import LexicalClaimExtractor
from response_quality.config.logging import configure_logging, get_logger
from response_quality.config.settings import settings
from response_quality.data_management.schemas import (
    AggregateResult,
    Context,
    PipelineOptions,
    Response,
    StageStatus,
    ValidationLevel,
)
from response_quality.pipeline import PipelineConfig, ResponseQualityPipeline

app = typer.Typer(
    help="Response Quality CLI - validation, fact checking, confidence and contradiction screening",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

RECOMMENDATION_STYLES = {
    "accept": "green",
    "review": "yellow",
    "verify": "yellow",
    "request_human": "red",
    "reject": "bold red",
}
STATUS_MARKS = {
    StageStatus.COMPLETED: "[green]✓ completed[/green]",
    StageStatus.FAILED: "[red]✗ failed[/red]",
    StageStatus.SKIPPED: "[dim]- skipped[/dim]",
}


def load_payload(path: Path) -> tuple[Response, Context, dict[str, Any]]:
    """Read and validate a JSON payload file."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        console.print(f"[red]✗[/red] Could not read {path}: {e}")
        raise typer.Exit(1)

    if "response" not in raw:
        console.print(f"[red]✗[/red] {path} has no 'response' object")
        raise typer.Exit(1)

    try:
        response = Response.model_validate(raw["response"])
        context = Context.model_validate(raw.get("context") or {})
    except ValidationError as e:
        console.print(f"[red]✗[/red] Invalid payload: {e}")
        raise typer.Exit(1)
    return response, context, raw.get("options") or {}


@app.command()
def status() -> None:
    """
    Display pipeline configuration.

    Shows the effective settings read from the environment and .env file.
    """
    logger.info("Displaying pipeline status")
    config = PipelineConfig.from_settings()

    table = Table(title="Response Quality Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=22)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    strict = "✓ Strict" if config.strict_mode else "✓ Lenient"
    table.add_row(
        "Pipeline",
        strict,
        f"Deadline: {config.max_processing_time_ms} ms, "
        f"contradiction threshold: {config.contradiction_threshold}",
    )
    table.add_row(
        "Result Cache",
        "✓ Active",
        f"TTL: {config.cache_ttl_seconds:g}s, sweep every {config.cache_cleanup_interval_seconds:g}s",
    )
    table.add_row(
        "Fact Checking",
        "✓ Active",
        f"Max claims: {config.max_claims_per_request}, concurrency: {config.verification_concurrency}",
    )

    audit_mode = "sync" if config.audit_sync_mode else f"queued ({config.audit_queue_size})"
    audit_target = config.audit_persistence_path or "in-memory"
    table.add_row(
        "Audit",
        "✓ Enabled" if config.audit_enabled else "✗ Disabled",
        f"{audit_mode}, {config.audit_max_attempts} attempts, {audit_target}",
    )

    log_details = f"Level: {settings.log_level}, Format: {settings.log_format}"
    table.add_row("Logging", "✓ Active", log_details)

    console.print(table)


@app.command()
def evaluate(
    payload: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON payload file"),
    level: Optional[ValidationLevel] = typer.Option(
        None, "--level", "-l", help="Overrides the payload and configured level"
    ),
    strict: bool = typer.Option(False, "--strict", help="Stop when validation fails"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """
    Run the full quality pipeline on a response.

    Args:
        payload: JSON file with response, context and options
        level: Validation level (basic, standard, enhanced); defaults to the
            payload options, then the configuration
        strict: Enable strict mode for this run
        as_json: Emit the AggregateResult as JSON instead of tables
        verbose: Enable debug logging
    """
    if verbose:
        configure_logging("DEBUG")

    response, context, raw_options = load_payload(payload)
    try:
        if level is not None:
            raw_options = {**raw_options, "validation_level": level}
        options = PipelineOptions.model_validate(raw_options)
    except ValidationError as e:
        console.print(f"[red]✗[/red] Invalid options: {e}")
        raise typer.Exit(1)

    config = PipelineConfig.from_settings()
    if strict:
        config = config.model_copy(update={"strict_mode": True})

    effective_level = options.validation_level or config.validation_level
    logger.info(
        f"Evaluating response {response.id}",
        validation_level=effective_level.value,
        strict=config.strict_mode,
    )

    async def run() -> AggregateResult:
        async with ResponseQualityPipeline(config=config) as pipeline:
            return await pipeline.evaluate(response, context, options)

    result = asyncio.run(run())

    if as_json:
        console.print_json(result.model_dump_json())
        return

    render_result(result)
    if result.recommendation.value == "reject":
        raise typer.Exit(2)


def render_result(result: AggregateResult) -> None:
    style = RECOMMENDATION_STYLES.get(result.recommendation.value, "white")
    console.print(
        Panel(
            f"Quality: [bold]{result.overall_quality:.2f}[/bold]   "
            f"Risk: [bold]{result.risk_level.value}[/bold]   "
            f"Recommendation: [{style}]{result.recommendation.value}[/{style}]",
            title=f"Response {result.metadata.response_id}",
            border_style=style,
        )
    )

    stages = Table(title="Stages", show_header=True, header_style="bold magenta")
    stages.add_column("Stage", style="cyan")
    stages.add_column("Status")
    stages.add_column("Duration", justify="right")
    stages.add_column("Error", style="red")
    for stage in result.processing_stages:
        stages.add_row(
            stage.stage.value,
            STATUS_MARKS[stage.status],
            f"{stage.duration_ms:.1f} ms",
            stage.error or "",
        )
    console.print(stages)

    if result.critical_issues:
        console.print("\n[bold red]Critical issues[/bold red]")
        for issue in result.critical_issues:
            console.print(f"  [red]✗[/red] {issue}")

    console.print("\n[bold cyan]Recommendations[/bold cyan]")
    for recommendation in result.recommendations:
        console.print(f"  • {recommendation}")


@app.command()
def claims(
    payload: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON payload file"),
) -> None:
    """
    List the factual claims extracted from a response.

    Args:
        payload: JSON file with a response object
    """
    response, _, _ = load_payload(payload)
    extracted = LexicalClaimExtractor().extract(response.content)
    logger.info(f"Extracted {len(extracted)} claims", response_id=response.id)

    if not extracted:
        console.print("[yellow]No verifiable claims found[/yellow]")
        return

    table = Table(title=f"Claims in {response.id}", show_header=True, header_style="bold magenta")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Confidence", justify="right")
    table.add_column("Entities")
    table.add_column("Text")
    for claim in extracted:
        table.add_row(
            claim.id,
            claim.type.value,
            f"{claim.confidence:.2f}",
            ", ".join(e.text for e in claim.entities),
            claim.text,
        )
    console.print(table)


@app.command()
def contradictions(
    payload: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON payload file"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", min=0.0, max=1.0),
) -> None:
    """
    Detect contradictions within a response and against its context.

    Args:
        payload: JSON file with response and context
        threshold: Minimum contradiction score (defaults to configuration)
    """
    response, context, _ = load_payload(payload)
    config = PipelineConfig.from_settings().model_copy(update={"audit_enabled": False})
    effective = threshold if threshold is not None else config.contradiction_threshold

    async def run():
        pipeline = ResponseQualityPipeline(config=config)
        return await pipeline.detect_contradictions_only(response, context, effective)

    analysis = asyncio.run(run())

    if not analysis.contradictions:
        console.print("[green]✓[/green] No contradictions found")
    else:
        table = Table(title="Contradictions", show_header=True, header_style="bold magenta")
        table.add_column("Type", style="cyan")
        table.add_column("Severity", style="red")
        table.add_column("Score", justify="right")
        table.add_column("Statements")
        for c in analysis.contradictions:
            table.add_row(
                c.type.value,
                c.severity.value,
                f"{c.contradiction_score:.2f}",
                f"{c.claim1.text}\n[dim]vs[/dim]\n{c.claim2.text}",
            )
        console.print(table)

    for recommendation in analysis.resolution_recommendations:
        console.print(f"  • {recommendation}")


if __name__ == "__main__":
    app()
