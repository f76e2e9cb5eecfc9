"""Typer CLI: ``figqa run``, ``rerun``, ``validate``, ``analyze-tests`` and ``render``."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from figqa.config import load_config
from figqa.schemas.config import PipelineConfig
from figqa.schemas.stage import Stage

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="figqa",
    help="Turn a Figma design into requirements, code, tests and a test report.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path) -> PipelineConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _build_clients(cfg: PipelineConfig, *, dry_run: bool):
    """Return the default generation client and any per-stage overrides."""
    if dry_run:
        from figqa.shared.llm_client import DryRunClient

        return DryRunClient(), {}

    from figqa.shared.llm_client import GenerationClient

    api_key = os.getenv(cfg.api_key_env, "")
    if not api_key:
        console.print(f"[red]Error:[/] {cfg.api_key_env} is not set (add it to .env or the environment).")
        raise typer.Exit(code=1)

    def make(key: str) -> GenerationClient:
        return GenerationClient(key, model=cfg.model, base_url=cfg.base_url, timeout=cfg.timeout_seconds)

    stage_clients = {}
    for stage, settings in cfg.stages.items():
        if not settings.api_key_env:
            continue
        if key := os.getenv(settings.api_key_env, ""):
            stage_clients[stage] = make(key)
        else:
            logger.warning("%s is not set; %s uses the default key", settings.api_key_env, stage.label)
    return make(api_key), stage_clients


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to pipeline-config.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a configuration file without running the pipeline."""
    _setup_logging(verbose)
    cfg = _load(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  Figma URL:   {cfg.figma_url or '(none)'}")
    console.print(f"  Design file: {cfg.design_file or '(none)'}")
    console.print(f"  Model:       {cfg.model}")
    console.print(f"  Framework:   {cfg.framework}")
    console.print(f"  Blueprint:   depth {cfg.blueprint.max_depth}, {cfg.blueprint.max_children} children per node")
    for stage in Stage:
        s = cfg.settings_for(stage)
        key = f", key from {s.api_key_env}" if s.api_key_env else ""
        console.print(f"    - {stage.label}: creativity {s.creativity}, max {s.max_output_length} tokens{key}")
    console.print(f"  Output dir:  {cfg.output_directory}")


@app.command()
def run(
    config: Path = typer.Option(..., "--config", "-c", help="Path to pipeline-config.yml"),
    until: Stage = typer.Option(None, "--until", help="Stop after this stage."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the full pipeline with canned responses (no API calls)."),
) -> None:
    """Run the pipeline from the design through to the test report."""
    _setup_logging(verbose)
    cfg = _load(config)

    if dry_run:
        console.print("[yellow]DRY-RUN mode: no API calls will be made.[/]\n")

    console.print(f"[bold]Starting pipeline for:[/] {cfg.design_file or cfg.figma_url}\n")
    ok = asyncio.run(_run_pipeline(cfg, until=until, dry_run=dry_run))
    if not ok:
        raise typer.Exit(code=1)


async def _run_pipeline(cfg: PipelineConfig, *, until: Stage | None = None, dry_run: bool = False) -> bool:
    from figqa.agents.orchestrator.agent import PipelineOrchestrator
    from figqa.shared.figma_client import FigmaClientError
    from figqa.shared.llm_client import DRY_RUN_DESIGN
    from figqa.shared.progress import PipelineProgress

    client, stage_clients = _build_clients(cfg, dry_run=dry_run)
    orchestrator = PipelineOrchestrator(client, cfg, stage_clients=stage_clients)

    try:
        if dry_run and not cfg.design_file:
            orchestrator.load_design(DRY_RUN_DESIGN, source="dry-run sample")
        else:
            await orchestrator.fetch_design(os.getenv(cfg.figma_token_env, ""))
    except (FigmaClientError, ValueError, OSError) as exc:
        console.print(f"[red]Could not load the design:[/] {exc}")
        return False

    with PipelineProgress() as progress:
        state = await orchestrator.run(progress, until=until)
        progress.print_token_summary()

    report_path = orchestrator.write_outputs()
    console.print(f"\n[green]Outputs written to:[/] {report_path.parent}")
    return _report_errors(state.errors)


def _report_errors(errors: dict) -> bool:
    for stage, error in errors.items():
        hint = " Re-run it with [bold]figqa rerun[/]." if error.retryable else ""
        console.print(f"[red]{stage.label} failed ({error.error_type}):[/] {error.message}{hint}")
    return not errors


@app.command()
def rerun(
    config: Path = typer.Option(..., "--config", "-c", help="Path to pipeline-config.yml"),
    output: Path = typer.Option(..., "--output", "-o", help="Output directory from a previous run (must contain state.json)."),
    stage: Stage = typer.Option(..., "--stage", "-s", help="Stage to regenerate."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Regenerate one stage of a saved pipeline; later artifacts are kept and marked stale."""
    _setup_logging(verbose)
    cfg = _load(config).model_copy(update={"output_directory": str(output)})
    ok = asyncio.run(_run_rerun(cfg, output, stage, dry_run=dry_run))
    if not ok:
        raise typer.Exit(code=1)


async def _run_rerun(cfg: PipelineConfig, out_dir: Path, stage: Stage, *, dry_run: bool = False) -> bool:
    from figqa.agents.orchestrator.agent import PipelineOrchestrator
    from figqa.output.files import load_state
    from figqa.shared.errors import PipelineError
    from figqa.shared.progress import PipelineProgress

    try:
        state = load_state(out_dir)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Could not load saved state:[/] {exc}")
        return False

    client, stage_clients = _build_clients(cfg, dry_run=dry_run)
    orchestrator = PipelineOrchestrator(client, cfg, stage_clients=stage_clients)
    orchestrator.restore(state)

    failure = ""
    with PipelineProgress() as progress:
        progress.start_stage(stage.label)
        try:
            await orchestrator.run_stage(
                stage, on_tokens=lambda i, o: progress.record_tokens(stage.label, i, o),
            )
        except PipelineError as exc:
            progress.fail_stage(stage.label, str(exc))
            failure = str(exc)
        else:
            if stage in orchestrator.state.errors:
                progress.fail_stage(stage.label, orchestrator.state.errors[stage].message)
            else:
                progress.finish_stage(stage.label)

    orchestrator.write_outputs()
    if failure:
        console.print(f"[red]{stage.label} did not run:[/] {failure}")
    if orchestrator.state.stale:
        labels = ", ".join(s.label for s in orchestrator.state.stale)
        console.print(f"[yellow]Stale artifacts (regenerate to refresh):[/] {labels}")
    return _report_errors(orchestrator.state.errors) and not failure


@app.command("analyze-tests")
def analyze_tests(
    tests: Path = typer.Option(..., "--tests", "-t", help="Generated test code file."),
    app_source: Path = typer.Option(..., "--app", "-a", help="Application source file."),
    as_json: bool = typer.Option(False, "--json", help="Print the summary as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Statically analyze a test file against application code (nothing is executed)."""
    _setup_logging(verbose)
    from figqa.shared.static_analyzer import analyze

    for p in (tests, app_source):
        if not p.is_file():
            console.print(f"[red]File not found:[/] {p}")
            raise typer.Exit(code=1)

    summary = analyze(
        tests.read_text(encoding="utf-8", errors="replace"),
        app_source.read_text(encoding="utf-8", errors="replace"),
    )
    if as_json:
        print(json.dumps(summary.model_dump(mode="json"), indent=2))
        return

    table = Table(title=f"Simulated results ({summary.framework})")
    table.add_column("ID")
    table.add_column("Test")
    table.add_column("Status")
    table.add_column("Error")
    for t in summary.tests:
        status = "[green]passed[/]" if t.status == "passed" else "[red]failed[/]"
        table.add_row(t.id, t.name, status, t.error or "")
    console.print(table)

    cert = summary.certification()
    console.print(f"\nPass rate: {summary.pass_rate:.0%}, [bold]{cert.status}[/]: {cert.message}")
    if summary.missing_selectors:
        console.print(f"Missing selectors: {', '.join(summary.missing_selectors)}")


@app.command()
def render(
    output: Path = typer.Option(..., "--output", "-o", help="Output directory from a previous run (must contain state.json)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Re-render the Markdown test report from a saved state.json. No API calls.

    Example:

        figqa render --output ./output
    """
    _setup_logging(verbose)
    from figqa.output.files import REPORT_FILE, load_state
    from figqa.output.markdown import render_markdown_report

    try:
        state = load_state(output)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/]")
        console.print("Run [bold]figqa run[/] first; it saves state.json at the end.")
        raise typer.Exit(code=1)

    md_path = output / REPORT_FILE
    md_path.write_text(render_markdown_report(state), encoding="utf-8")
    console.print(f"[green]Markdown report written to:[/] {md_path}")
