"""UI components and progress tracking."""

from encodeher.ui.progress import (
    JobMonitor,
    TaskProgress,
    TaskStatus,
)
from encodeher.ui.reporter import (
    SummaryReporter,
    create_summary_table,
)

__all__ = [
    "JobMonitor",
    "TaskProgress",
    "TaskStatus",
    "SummaryReporter",
    "create_summary_table",
]
