"""
Data models for pipeline stages and progress reporting.

Stages publish ProgressEvents to a ProgressChannel; consumers such as the
terminal monitor subscribe to the channel without the pipeline knowing about
them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """Stage of an autopack job, in execution order."""

    METADATA = "metadata"
    SUBTITLES = "subtitles"
    FONTS = "fonts"
    V0_ENCODE = "v0"
    VIDEO_RENDITIONS = "video"
    AUDIO_RENDITIONS = "audio"
    PACKAGING = "packaging"


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress of one work item.

    For encodes `elapsed` and `total` are seconds of media; for extraction
    stages they count items.
    """

    stage: PipelineStage
    item_id: str
    elapsed: float
    total: float

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(max(self.elapsed / self.total, 0.0), 1.0)

    @property
    def is_complete(self) -> bool:
        return self.total > 0 and self.elapsed >= self.total


ProgressSink = Callable[[ProgressEvent], None]


class ProgressChannel:
    """Fan-out of progress events to any number of subscribers."""

    def __init__(self) -> None:
        self._sinks: list[ProgressSink] = []

    def subscribe(self, sink: ProgressSink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: ProgressSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    def emit(self, stage: PipelineStage, item_id: str, elapsed: float, total: float) -> None:
        """Deliver an event to every subscriber; a failing subscriber never reaches the caller."""
        event = ProgressEvent(stage=stage, item_id=item_id, elapsed=elapsed, total=total)
        for sink in list(self._sinks):
            try:
                sink(event)
            except Exception as e:
                logger.warning(f"Progress subscriber failed: {e}")

    def reporter(self, stage: PipelineStage, item_id: str, total: float) -> Callable[[float], None]:
        """Bind stage, item and total into a plain elapsed-seconds callback."""

        def report(elapsed: float) -> None:
            self.emit(stage, item_id, elapsed, total)

        return report
