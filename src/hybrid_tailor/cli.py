"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from hybrid_tailor.clients.llm_client import LLMClient
from hybrid_tailor.config import AppConfig, load_config
from hybrid_tailor.errors import HybridTailorError
from hybrid_tailor.models.job import JobData
from hybrid_tailor.models.result import RecruiterReadinessScore
from hybrid_tailor.models.resume import ResumeContent
from hybrid_tailor.pipeline.orchestrator import HybridTailor, PipelineState
from hybrid_tailor.pipeline.pre_analysis import summarize_pre_analysis
from hybrid_tailor.pipeline.rules import DEFAULT_RULES, get_rule_stats
from hybrid_tailor.pipeline.scoring import DIMENSION_DISPLAY_NAMES, get_score_summary

app = typer.Typer(
    name="hybrid-tailor",
    help="Tailor a structured resume to a job posting with rules plus constrained AI rewriting",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_data(path: Path) -> dict:
    """Read a JSON or YAML mapping."""
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) if path.suffix.lower() in (".yaml", ".yml") else json.loads(text)
    if not isinstance(data, dict):
        console.print(f"[red]Expected a mapping in {path}[/red]")
        raise typer.Exit(1)
    return data


def _load_inputs(resume: Path, job: Path) -> tuple[ResumeContent, JobData]:
    try:
        return (
            ResumeContent.model_validate(_load_data(resume)),
            JobData.model_validate(_load_data(job)),
        )
    except ValidationError as e:
        console.print(f"[red]Invalid input:[/red]\n{e}")
        raise typer.Exit(1)


def default_output_path(job_title: str) -> Path:
    """./output/<title>_tailored.json with the title reduced to a single safe file name."""
    name = re.sub(r"[^\w.-]+", "_", job_title).strip("._") or "job"
    return Path("output") / f"{name}_tailored.json"


def _build_tailor(config: AppConfig) -> HybridTailor:
    llm = LLMClient(timeout=config.llm.timeout, retryable_status_codes=config.retry.retryable_status_codes)
    return HybridTailor(llm, config=config)


def _print_score(score: RecruiterReadinessScore) -> None:
    lines = [
        f"{DIMENSION_DISPLAY_NAMES[name]}: {dim.raw} (x{dim.weight:.2f})"
        for name, dim in score.dimensions.items()
    ]
    lines.append(f"\n[bold]{get_score_summary(score)}[/bold]")
    console.print(Panel("\n".join(lines), title="Recruiter readiness"))
    if score.top_suggestions:
        console.print("\n[yellow]Suggestions:[/yellow]")
        for suggestion in score.top_suggestions:
            console.print(f"  - {suggestion}")


def _fail(error: HybridTailorError) -> None:
    console.print(
        f"[red]Tailoring failed during {error.phase.value}: {error.message} "
        f"({error.root_code.value})[/red]"
    )
    raise typer.Exit(1)


@app.command()
def tailor(
    resume: Path = typer.Argument(help="Structured resume (JSON or YAML)"),
    job: Path = typer.Argument(help="Job posting (JSON or YAML)"),
    resume_id: str = typer.Option("", "--resume-id", help="Identifier recorded with the analysis"),
    output: Path = typer.Option(None, "--output", "-o", help="Where to write the result JSON"),
    config_path: Path = typer.Option(None, "--config", help="config.yaml path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Tailor a resume to a job and write the full result as JSON."""
    _setup_logging(verbose)
    config = load_config(config_path)
    resume_data, job_data = _load_inputs(resume, job)
    hybrid = _build_tailor(config)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Tailoring...", total=None)

            def on_phase(state: PipelineState, detail: str) -> None:
                progress.update(task, description=detail or state.value)

            result = asyncio.run(hybrid.run(resume_data, job_data, resume_id, on_phase=on_phase))
    except HybridTailorError as e:
        _fail(e)

    if output is None:
        output = default_output_path(job_data.title)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
    console.print(f"\n[green]Result saved: {output}[/green]")

    changes = result.changes
    if changes.summary_diff:
        console.print(Panel(
            f"[dim]{changes.summary_diff.before or '(none)'}[/dim]\n\n{changes.summary_diff.after}",
            title="Summary",
        ))
    for diff in changes.bullet_diffs:
        console.print(f"[cyan]{diff.bullet_id}[/cyan] ({diff.change_type})")
        console.print(f"  [dim]- {diff.before}[/dim]")
        console.print(f"  [green]+ {diff.after}[/green]")
    if result.why_fit:
        console.print("\n[bold]Why I'm the right fit[/bold]")
        for entry in result.why_fit:
            console.print(f"  [bold]{entry.label}[/bold] {entry.text}")
    if changes.skills_suggested:
        console.print(f"\n[yellow]Skills to consider adding:[/yellow] {', '.join(changes.skills_suggested)}")

    _print_score(result.quality_score)
    usage = result.token_usage
    console.print(
        f"[dim]Rules: {', '.join(result.applied_rules) or 'none'} | "
        f"tokens: {usage.total} (saved ~{usage.saved_vs_pure_ai}) | "
        f"cost: ${usage.estimated_cost_usd:.4f} | {result.processing_time_ms}ms[/dim]"
    )


@app.command()
def analyze(
    resume: Path = typer.Argument(help="Structured resume (JSON or YAML)"),
    job: Path = typer.Argument(help="Job posting (JSON or YAML)"),
    config_path: Path = typer.Option(None, "--config", help="config.yaml path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Preview what tailoring would change, without rewriting anything."""
    _setup_logging(verbose)
    config = load_config(config_path)
    resume_data, job_data = _load_inputs(resume, job)
    hybrid = _build_tailor(config)

    try:
        with console.status("Analyzing..."):
            preview = asyncio.run(hybrid.analyze(resume_data, job_data))
    except HybridTailorError as e:
        _fail(e)

    summary = summarize_pre_analysis(preview.pre_analysis)
    est = preview.estimated_changes
    console.print(Panel(
        f"Bullets to improve: {est.bullets_to_improve}\n"
        f"Differentiators: {est.unique_differentiators}\n"
        f"Missing keywords: {est.missing_keywords}\n"
        f"Soft skills detected: {est.soft_skills_detected}",
        title=f"Pre-analysis (overall {summary.overall_score})",
    ))
    if summary.top_strengths:
        console.print("[green]Strengths:[/green] " + "; ".join(summary.top_strengths))
    if summary.top_gaps:
        console.print("[yellow]Gaps:[/yellow] " + "; ".join(summary.top_gaps))
    _print_score(preview.quality_score)


@app.command()
def rules() -> None:
    """List the default transformation rules in evaluation order."""
    for rule in sorted(DEFAULT_RULES, key=lambda r: r.priority):
        state = "" if rule.enabled else " [dim](disabled)[/dim]"
        targets = ", ".join(sorted({a.target for a in rule.actions}))
        console.print(
            f"  [bold]{rule.priority:>3} {rule.id}[/bold]: {rule.name} "
            f"({rule.recruiter_issue} -> {targets}){state}"
        )
    stats = get_rule_stats()
    console.print(f"\n[dim]{stats['enabled']}/{stats['total']} enabled[/dim]")


if __name__ == "__main__":
    app()
