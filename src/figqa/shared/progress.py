"""Rich progress display for the pipeline."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

console = Console()


class PipelineProgress:
    """Tracks progress across the six generation stages using Rich."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_ids: dict[str, int] = {}
        self.input_tokens = 0
        self.output_tokens = 0

    def __enter__(self) -> "PipelineProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start_stage(self, stage_name: str) -> None:
        """Register and start tracking a stage."""
        tid = self._progress.add_task(f"[cyan]{stage_name}[/]", total=None)
        self._task_ids[stage_name] = tid

    def update_stage(self, stage_name: str, status: str) -> None:
        if stage_name in self._task_ids:
            self._progress.update(
                self._task_ids[stage_name],
                description=f"[cyan]{stage_name}[/] - {status}",
            )

    def finish_stage(self, stage_name: str, note: str = "") -> None:
        """Mark a stage as complete, with an optional short note."""
        if stage_name in self._task_ids:
            suffix = f" [dim]({note})[/]" if note else ""
            self._progress.update(
                self._task_ids[stage_name],
                description=f"[green]✓ {stage_name}[/]{suffix}",
                completed=True,
            )

    def fail_stage(self, stage_name: str, error: str) -> None:
        """Mark a stage as failed."""
        if stage_name in self._task_ids:
            self._progress.update(
                self._task_ids[stage_name],
                description=f"[red]✗ {stage_name}: {error}[/]",
                completed=True,
            )

    def record_tokens(self, stage_name: str, input_tokens: int, output_tokens: int) -> None:
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens
        self.update_stage(stage_name, f"{input_tokens:,} in / {output_tokens:,} out tokens")

    def print_token_summary(self) -> None:
        self._progress.console.print(
            f"[dim]Tokens used: {self.input_tokens:,} input, {self.output_tokens:,} output[/]"
        )

    def log_event(self, stage_name: str, message: str, style: str = "dim") -> None:
        """Print a persistent log line above the spinner (not overwritten)."""
        self._progress.console.print(f"  [{style}]{stage_name}:[/] {message}")

    def print_phase(self, label: str) -> None:
        """Print a phase header outside the progress display."""
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))
