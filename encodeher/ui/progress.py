"""
Progress tracking and monitoring for autopack jobs.

The monitor subscribes to a job's ProgressChannel and renders one Rich
progress bar per work item:
- One row each for metadata, subtitle and font extraction (counted in items)
- One row per encode (counted in seconds of media)
- A packaging row
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from ..models import PipelineStage, ProgressEvent
from ..utils import get_logger

logger = get_logger(__name__)

# Stages shown as a single row counting items; the item id becomes the status text
COUNTED_STAGES = (
    PipelineStage.METADATA,
    PipelineStage.SUBTITLES,
    PipelineStage.FONTS,
    PipelineStage.PACKAGING,
)

STAGE_LABELS = {
    PipelineStage.METADATA: "Gathering metadata",
    PipelineStage.SUBTITLES: "Extracting subs",
    PipelineStage.FONTS: "Extracting fonts",
    PipelineStage.V0_ENCODE: "Encoding V0",
    PipelineStage.VIDEO_RENDITIONS: "Encoding video",
    PipelineStage.AUDIO_RENDITIONS: "Encoding audio",
    PipelineStage.PACKAGING: "Packaging",
}


class TaskStatus(Enum):
    """Status of a monitored work item."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class TaskProgress:
    """
    Progress information for a single work item.
    """

    task_id: str
    name: str
    total: float = 0.0
    current: float = 0.0
    status: TaskStatus = TaskStatus.PENDING
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    rich_task_id: Optional[TaskID] = None

    @property
    def progress(self) -> float:
        """Progress from 0.0 to 1.0."""
        if self.total <= 0:
            return 1.0 if self.status == TaskStatus.COMPLETED else 0.0
        return min(max(self.current / self.total, 0.0), 1.0)

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time in seconds."""
        if self.start_time is None:
            return 0.0
        end = self.end_time if self.end_time else time.time()
        return end - self.start_time

    def update(self, current: float, total: float) -> None:
        self.total = total
        self.current = current
        if current > 0 and self.status == TaskStatus.PENDING:
            self.status = TaskStatus.RUNNING
            self.start_time = time.time()
        # A stage with nothing to do is complete as soon as it is announced
        if current >= total and self.status != TaskStatus.COMPLETED:
            self.status = TaskStatus.COMPLETED
            self.end_time = time.time()


def task_key(event: ProgressEvent) -> str:
    """Row identity of an event."""
    if event.stage in COUNTED_STAGES:
        return event.stage.value
    return f"{event.stage.value}:{event.item_id}"


def task_name(event: ProgressEvent) -> str:
    label = STAGE_LABELS[event.stage]
    if event.stage in COUNTED_STAGES:
        return label
    return f"{label} {event.item_id}"


class JobMonitor:
    """
    Rich-based progress monitor for one autopack job.

    Use as a context manager and pass `handle` to `ProgressChannel.subscribe`.
    """

    def __init__(self, console: Optional[Console] = None, title: str = "encodeher"):
        """
        Initialize job monitor.

        Args:
            console: Rich console (creates new if None)
            title: Panel title, usually the job id
        """
        self.console = console or Console()
        self.title = title
        self.tasks: dict[str, TaskProgress] = {}
        self._progress: Optional[Progress] = None
        self._live: Optional[Live] = None

    def create_progress(self) -> Progress:
        """
        Create Rich progress display.

        Returns:
            Progress object with custom columns
        """
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description:<24}"),
            BarColumn(bar_width=None),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            TextColumn("[cyan]{task.fields[status]}"),
            console=self.console,
            expand=True,
        )

    def start(self) -> None:
        """Start the progress monitor."""
        self._progress = self.create_progress()
        self._live = Live(
            self._generate_layout(),
            console=self.console,
            refresh_per_second=4,
            transient=False,
        )
        self._live.start()
        logger.debug("Progress monitor started")

    def stop(self) -> None:
        """Stop the progress monitor."""
        if self._live:
            self._live.update(self._generate_layout())
            self._live.stop()
            self._live = None
        self._progress = None
        logger.debug("Progress monitor stopped")

    def handle(self, event: ProgressEvent) -> None:
        """
        Apply a progress event, creating its row on first sight.

        Args:
            event: Event from the job's progress channel
        """
        key = task_key(event)
        task = self.tasks.get(key)
        if task is None:
            task = TaskProgress(task_id=key, name=task_name(event), total=event.total)
            self.tasks[key] = task
            if self._progress:
                task.rich_task_id = self._progress.add_task(
                    task.name, total=max(event.total, 1.0), status=""
                )

        task.update(event.elapsed, event.total)

        if self._progress and task.rich_task_id is not None:
            status = "✓" if task.status == TaskStatus.COMPLETED else ""
            if event.stage in COUNTED_STAGES and task.status != TaskStatus.COMPLETED:
                status = event.item_id
            self._progress.update(
                task.rich_task_id,
                total=max(event.total, 1.0),
                completed=event.elapsed if event.total > 0 else task.progress,
                status=status,
            )
            if self._live:
                self._live.update(self._generate_layout())

    def _generate_statistics(self) -> str:
        total = len(self.tasks)
        if not total:
            return ""
        completed = sum(1 for t in self.tasks.values() if t.status == TaskStatus.COMPLETED)
        return f"[green]Completed: {completed}[/green] | Total: {total}"

    def _generate_layout(self) -> Panel:
        return Panel(
            self._progress if self._progress else "",
            title=f"[bold cyan]{self.title}[/bold cyan]",
            subtitle=self._generate_statistics(),
            border_style="cyan",
        )

    def __enter__(self) -> "JobMonitor":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()
