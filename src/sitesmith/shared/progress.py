"""Progress channel for generation jobs and its Rich console consumer."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn

logger = logging.getLogger(__name__)

console = Console()


class ProgressEvent(BaseModel):
    job_id: str
    seq: int
    phase: str
    percent: int
    message: str
    terminal: bool = False
    status: str = ""  # set on the terminal event: done | failed | cancelled
    locator: str = ""
    error: dict[str, Any] | None = None


class ProgressChannel:
    """Ordered, bounded stream of progress events for one job.

    - ``percent`` never decreases; lower values are clamped up.
    - An event identical to the previous one is dropped.
    - When the queue is full the oldest undelivered event is discarded;
      ``history`` always keeps every published event.
    - Exactly one terminal event is emitted; later publishes are ignored.

    Intended for a single consumer iterating with ``async for``.
    """

    def __init__(self, job_id: str = "", *, maxsize: int = 256) -> None:
        self.job_id = job_id
        self.history: list[ProgressEvent] = []
        self._queue: asyncio.Queue[ProgressEvent] = asyncio.Queue(maxsize=maxsize)
        self._seq = 0
        self._percent = 0
        self._last: tuple[str, int, str] | None = None
        self._terminal: ProgressEvent | None = None

    @property
    def closed(self) -> bool:
        return self._terminal is not None

    @property
    def percent(self) -> int:
        return self._percent

    def publish(self, phase: str, percent: int, message: str) -> ProgressEvent | None:
        """Queue a progress event. Returns ``None`` when it was dropped."""
        if self.closed:
            logger.debug("Progress after terminal event ignored: %s %s", phase, message)
            return None
        percent = max(self._percent, min(100, int(percent)))
        key = (phase, percent, message)
        if key == self._last:
            return None
        self._last = key
        self._percent = percent
        return self._emit(ProgressEvent(
            job_id=self.job_id, seq=self._next_seq(), phase=phase, percent=percent, message=message,
        ))

    def finish(
        self,
        status: str,
        *,
        message: str = "",
        locator: str = "",
        error: dict[str, Any] | None = None,
    ) -> ProgressEvent:
        """Emit the terminal event. Idempotent: later calls return the first."""
        if self._terminal is not None:
            return self._terminal
        if status == "done":
            self._percent = 100
        event = ProgressEvent(
            job_id=self.job_id,
            seq=self._next_seq(),
            phase=status,
            percent=self._percent,
            message=message or status,
            terminal=True,
            status=status,
            locator=locator,
            error=error,
        )
        self._terminal = event
        return self._emit(event)

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _emit(self, event: ProgressEvent) -> ProgressEvent:
        self.history.append(event)
        if self._queue.full():
            dropped = self._queue.get_nowait()
            logger.debug("Progress queue full, dropping event #%d", dropped.seq)
        self._queue.put_nowait(event)
        return event

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        while True:
            event = await self._queue.get()
            yield event
            if event.terminal:
                return


class PipelineProgress:
    """Renders a job's progress channel with Rich."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
        )
        self._task_id: int | None = None
        self._phase = ""

    def __enter__(self) -> "PipelineProgress":
        self._progress.__enter__()
        self._task_id = self._progress.add_task("[cyan]Starting[/]", total=100)
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def log_event(self, phase: str, message: str, style: str = "dim") -> None:
        """Print a persistent log line above the bar (not overwritten)."""
        self._progress.console.print(f"  [{style}]{phase}:[/] {message}")

    def print_phase(self, label: str) -> None:
        self._progress.console.print(Panel(f"[bold]{label}[/bold]", style="blue"))

    def handle(self, event: ProgressEvent) -> None:
        if event.terminal:
            if event.status == "done":
                description = "[green]✓ Done[/]"
            elif event.status == "cancelled":
                description = "[yellow]Cancelled[/]"
            else:
                reason = (event.error or {}).get("message", event.message)
                description = f"[red]✗ Failed: {reason}[/]"
            self._progress.update(self._task_id, description=description, completed=event.percent)
            return
        if event.phase != self._phase:
            self._phase = event.phase
            self.print_phase(event.phase.capitalize())
        self.log_event(event.phase, event.message)
        self._progress.update(
            self._task_id,
            description=f"[cyan]{event.phase}[/]: {event.message}",
            completed=event.percent,
        )

    async def follow(self, channel: ProgressChannel) -> ProgressEvent | None:
        """Consume ``channel`` until its terminal event; returns that event."""
        last = None
        async for event in channel:
            self.handle(event)
            last = event
        return last
