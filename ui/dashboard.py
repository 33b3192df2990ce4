"""
Rich-based terminal dashboard for netpulse runs.

All formatting helpers live in ``pulse.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from pulse.models import Phase, ProgressEvent, TestResult
from pulse.stats import format_latency, format_speed

console = Console()

_PHASE_LABELS: Dict[Phase, str] = {
    Phase.PING: "Ping",
    Phase.DOWNLOAD: "Download",
    Phase.UPLOAD: "Upload",
}


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]netpulse[/bold cyan]\n"
            "[dim]Latency, jitter, loss and throughput from the terminal[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_connection_info(result: TestResult) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("Server:", result.server)
    table.add_row("IP Address:", result.ip or "-")
    table.add_row("ISP:", result.isp or "-")
    if result.location:
        table.add_row("Location:", result.location)
    if result.connection_type:
        table.add_row("Connection:", result.connection_type)
    console.print(Panel(table, title="[bold]Connection[/bold]", border_style="blue"))


def print_final_results(result: TestResult, title: str = "Results") -> None:
    loss_color = "green" if result.packet_loss == 0 else "red"
    console.print()
    console.print(
        Panel.fit(
            f"[bold white]   Ping:[/bold white]  [bold yellow]{format_latency(result.ping)}[/bold yellow]  "
            f"[dim](jitter: {format_latency(result.jitter)})[/dim]\n"
            f"[bold white]   Packet Loss:[/bold white]  [{loss_color}]{result.packet_loss:.1f}%[/{loss_color}]\n"
            f"[bold white]   Download:[/bold white]  [bold green]{format_speed(result.download_speed)}[/bold green]\n"
            f"[bold white]   Upload:[/bold white]  [bold blue]{format_speed(result.upload_speed)}[/bold blue]",
            title=f"[bold]{title}[/bold]",
            border_style="cyan",
        )
    )
    console.print()


def format_simple(result: TestResult) -> str:
    """Plain-text summary for ``--simple`` mode."""
    lines = [
        f"Ping: {result.ping} ms (jitter: {result.jitter} ms)",
        f"Download: {result.download_speed:.1f} Mbps",
        f"Upload: {result.upload_speed:.1f} Mbps",
    ]
    if result.packet_loss > 0:
        lines.append(f"Packet Loss: {result.packet_loss:.1f}%")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Progress display
# ---------------------------------------------------------------------------

class PhaseProgressDisplay:
    """
    Subscriber that renders ``ProgressEvent``s as one ``rich`` bar per phase.

    A phase's bar is created on its first event and frozen at 100% when the
    next phase begins.  ``idle`` and ``complete`` stop the display.
    """

    def __init__(self, target: Optional[Console] = None) -> None:
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description:<9}"),
            BarColumn(bar_width=40),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TextColumn("[bold cyan]{task.fields[speed]}[/bold cyan]"),
            TimeElapsedColumn(),
            console=target or console,
        )
        self._tasks: Dict[Phase, TaskID] = {}
        self._current: Optional[Phase] = None
        self._running = False

    def __call__(self, event: ProgressEvent) -> None:
        self.update(event)

    def update(self, event: ProgressEvent) -> None:
        if not event.phase.is_active:
            self.stop(finished=event.phase is Phase.COMPLETE)
            return

        if not self._running:
            self.progress.start()
            self._running = True

        if event.phase is not self._current:
            if self._current in self._tasks:
                self.progress.update(self._tasks[self._current], completed=100)
            self._tasks[event.phase] = self.progress.add_task(
                _PHASE_LABELS[event.phase], total=100, speed=""
            )
            self._current = event.phase

        if event.phase is Phase.PING:
            speed = ""
        else:
            speed = format_speed(event.speed_mbps) if event.speed_mbps > 0 else "..."
        self.progress.update(
            self._tasks[event.phase], completed=event.percent_complete, speed=speed
        )

    def stop(self, finished: bool = False) -> None:
        if self._running:
            if finished and self._current in self._tasks:
                self.progress.update(self._tasks[self._current], completed=100)
            self.progress.stop()
            self._running = False
        self._current = None
