"""Typer CLI: ``sitesmith generate``, ``validate``, ``industries`` and ``render``."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from sitesmith.config import load_request
from sitesmith.industries import INDUSTRIES, find_industry, resolve_industry
from sitesmith.schemas.config import TIER_LIMITS, GenerationRequest, Tier
from sitesmith.schemas.job import JobState

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="sitesmith",
    help="Sitesmith: generate a complete small-business website from a business profile.",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path) -> GenerationRequest:
    try:
        return load_request(config)
    except Exception as exc:
        console.print(f"[red]Request validation failed:[/] {exc}")
        raise typer.Exit(code=1)


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to request.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a request file without generating anything."""
    _setup_logging(verbose)
    request = _load(config)
    profile = request.profile
    industry = resolve_industry(profile.industry)
    limits = request.pipeline.limits_for(request.tier)

    console.print("[green]Request is valid![/]\n")
    console.print(f"  Business:    {profile.name}")
    console.print(f"  Industry:    {profile.industry} -> {industry.name}"
                  + ("" if industry.known else " [yellow](unknown, generic defaults)[/]"))
    console.print(f"  Tier:        {request.tier.value} "
                  f"(up to {limits.max_pages} pages, {limits.max_sections_per_page} sections/page)")
    console.print(f"  Services:    {len(profile.services) or len(industry.default_services)}"
                  + ("" if profile.services else " (industry defaults)"))
    for name in profile.service_names:
        console.print(f"    - {name}")
    contact = profile.contact
    console.print(f"  Contact:     {contact.phone or contact.email or '(none)'}")
    console.print(f"  Threshold:   {request.pipeline.quality_threshold:.0f}/100, "
                  f"budget {request.pipeline.iteration_budget} iteration(s)")
    console.print(f"  Output dir:  {request.pipeline.output_directory}")


@app.command()
def generate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to request.yml"),
    tier: Tier = typer.Option(None, "--tier", "-t", help="Override the tier in the request file."),
    output: Path = typer.Option(None, "--output", "-o", help="Override the output directory."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the full pipeline with canned data (no API calls)."),
    offline: bool = typer.Option(False, "--offline", help="Skip the AI services and use rule-based output only."),
) -> None:
    """Generate a website from a request file."""
    _setup_logging(verbose)
    request = _load(config)

    settings = request.pipeline
    if output is not None:
        settings = settings.model_copy(update={"output_directory": str(output)})
    tier = tier or request.tier

    if dry_run:
        console.print("[yellow]DRY-RUN mode: no API calls will be made.[/]\n")
    elif offline or not os.environ.get("OPENAI_API_KEY"):
        offline = True
        console.print("[yellow]OFFLINE mode: every stage uses its rule-based path.[/]\n")

    console.print(f"[bold]Generating site for:[/] {request.profile.name} ({tier.value})\n")
    result = asyncio.run(_run_job(request, settings, tier, dry_run=dry_run, offline=offline))

    if result.status == JobState.DONE:
        score = f"{result.quality.aggregate:.1f}/100" if result.quality else "n/a"
        console.print(f"\n[green]Site written to:[/] {result.locator}")
        console.print(f"[bold]Quality score:[/] {score}")
        if result.report:
            for line in result.report.summary.recommendations:
                console.print(f"  - {line}")
        return

    message = result.error.message if result.error else result.status.value
    if result.status == JobState.CANCELLED:
        console.print(f"\n[yellow]Cancelled:[/] {message}")
        raise typer.Exit(code=130)
    console.print(f"\n[red]Generation failed:[/] {message}")
    raise typer.Exit(code=1)


async def _run_job(request, settings, tier, *, dry_run: bool = False, offline: bool = False):
    """Run one orchestrator job while rendering its progress channel."""
    from sitesmith.agents.orchestrator.agent import PipelineOrchestrator
    from sitesmith.shared.progress import PipelineProgress

    if dry_run:
        from sitesmith.shared.llm_client import DryRunClient
        client = DryRunClient()
    elif offline:
        from sitesmith.shared.llm_client import OfflineClient
        client = OfflineClient()
    else:
        from sitesmith.shared.llm_client import LLMClient
        client = LLMClient(
            text_model=settings.text_model,
            image_model=settings.image_model,
            max_concurrent_images=settings.image_concurrency,
        )

    orchestrator = PipelineOrchestrator(client, settings=settings)
    with PipelineProgress() as progress:
        result, _ = await asyncio.gather(
            orchestrator.run(request.profile, tier),
            progress.follow(orchestrator.channel),
        )
    return result


@app.command()
def industries(
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List the known industries and their page sets."""
    _setup_logging(verbose)
    table = Table(title="Known industries")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Keywords")
    table.add_column("Pages")
    table.add_column("Primary")
    for industry in INDUSTRIES:
        if not industry.known:
            continue
        pages = industry.pages or []
        table.add_row(
            industry.id,
            industry.name,
            ", ".join(industry.keywords[:4]),
            ", ".join(p.title for p in pages) or "(default)",
            industry.palette.primary,
        )
    console.print(table)

    tiers = Table(title="Tiers")
    tiers.add_column("Tier", style="cyan")
    tiers.add_column("Pages", justify="right")
    tiers.add_column("Sections/page", justify="right")
    tiers.add_column("Support images")
    for tier, limits in TIER_LIMITS.items():
        tiers.add_row(tier.value, str(limits.max_pages), str(limits.max_sections_per_page),
                      "yes" if limits.support_images else "no")
    console.print(tiers)


@app.command()
def lookup(
    industry: str = typer.Argument(..., help="Free-text industry, e.g. 'wedding photography studio'."),
) -> None:
    """Show which known industry a free-text industry resolves to."""
    match = find_industry(industry)
    if match is None:
        console.print(f"[yellow]No known industry matches[/] '{industry}'; generic defaults apply.")
        raise typer.Exit(code=1)
    console.print(f"[green]{industry}[/] -> {match.name} ({match.id})")


@app.command()
def render(
    output: Path = typer.Option(..., "--output", "-o", help="Site directory from a previous run (must contain phase-report.json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Re-render phase-report.md from a saved phase-report.json.

    Example:

        sitesmith render --output ./output/harbor-table-1a2b3c4d
    """
    _setup_logging(verbose)

    source = output / "phase-report.json"
    if not source.exists():
        console.print(f"[red]No phase-report.json found in {output}[/]")
        console.print("Run [bold]sitesmith generate[/] first; it saves phase-report.json with the site.")
        raise typer.Exit(code=1)

    from sitesmith.output.markdown import render_phase_report
    from sitesmith.schemas.pipeline import PhaseReport

    console.print(f"[bold]Loading report from:[/] {source}")
    report = PhaseReport.model_validate_json(source.read_text())
    md_path = output / "phase-report.md"
    md_path.write_text(render_phase_report(report))
    console.print(f"[green]Markdown report written to:[/] {md_path}")
