"""
Rendition planning and stream selection.
"""

from . import selection
from .resolution import NAMED_RESOLUTIONS, pick_fallback_resolution, plan_resolutions
from .selection import (
    all_audio,
    all_subtitles,
    ass_subtitles,
    audio_stream,
    describe_audio,
    describe_subtitle,
    subtitle_filter_index,
    subtitle_stream,
    supported_fonts,
    unique_language_audio,
    video_stream,
)

__all__ = [
    "selection",
    # Resolution
    "NAMED_RESOLUTIONS",
    "pick_fallback_resolution",
    "plan_resolutions",
    # Selection
    "all_audio",
    "all_subtitles",
    "ass_subtitles",
    "audio_stream",
    "describe_audio",
    "describe_subtitle",
    "subtitle_filter_index",
    "subtitle_stream",
    "supported_fonts",
    "unique_language_audio",
    "video_stream",
]
