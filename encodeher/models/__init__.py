"""Data models for encodeher."""

from encodeher.models.media import (
    ATTACHMENT,
    AUDIO,
    SUBTITLE,
    VIDEO,
    Chapter,
    FormatInfo,
    ProbeResult,
    Stream,
)
from encodeher.models.results import (
    MANIFEST_NAME,
    MANIFEST_VERSION,
    AudioRendition,
    AudioTrack,
    JobManifest,
    Resolution,
    SubtitleAsset,
    SubtitleTrack,
    VideoRendition,
)
from encodeher.models.tasks import (
    PipelineStage,
    ProgressChannel,
    ProgressEvent,
    ProgressSink,
)

__all__ = [
    # Media models
    "ATTACHMENT",
    "AUDIO",
    "SUBTITLE",
    "VIDEO",
    "Chapter",
    "FormatInfo",
    "ProbeResult",
    "Stream",
    # Result models
    "MANIFEST_NAME",
    "MANIFEST_VERSION",
    "AudioRendition",
    "AudioTrack",
    "JobManifest",
    "Resolution",
    "SubtitleAsset",
    "SubtitleTrack",
    "VideoRendition",
    # Progress models
    "PipelineStage",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressSink",
]
