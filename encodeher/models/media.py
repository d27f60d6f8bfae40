"""
Data models for probed media information.

This module contains dataclasses for the container format, individual streams
and chapters, as reported by ffprobe. None of them change after probing.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

VIDEO = "video"
AUDIO = "audio"
SUBTITLE = "subtitle"
ATTACHMENT = "attachment"


@dataclass(frozen=True)
class FormatInfo:
    """Information about the media container."""

    duration: float
    format_name: str = ""
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Stream:
    """
    One stream of the source container.

    `index` is the global stream index used by ffmpeg's `-map 0:<index>`.
    Optional tag values are exposed as properties returning None when absent.
    """

    index: int
    codec_type: str
    codec_name: str = ""
    tags: Mapping[str, str] = field(default_factory=dict)
    disposition: Mapping[str, bool] = field(default_factory=dict)
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def language(self) -> Optional[str]:
        return self.tags.get("language")

    @property
    def title(self) -> Optional[str]:
        return self.tags.get("title")

    @property
    def filename(self) -> Optional[str]:
        return self.tags.get("filename")

    @property
    def is_default(self) -> bool:
        return bool(self.disposition.get("default", False))

    @property
    def is_video(self) -> bool:
        return self.codec_type == VIDEO

    @property
    def is_audio(self) -> bool:
        return self.codec_type == AUDIO

    @property
    def is_subtitle(self) -> bool:
        return self.codec_type == SUBTITLE


@dataclass(frozen=True)
class Chapter:
    """A chapter marker; `title` is "?" when the source has none."""

    start: float
    end: float
    title: str = "?"

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end, "title": self.title}


@dataclass(frozen=True)
class ProbeResult:
    """Complete probe of a source file, produced once per job."""

    format: FormatInfo
    streams: tuple[Stream, ...]
    chapters: tuple[Chapter, ...] = ()

    @property
    def duration(self) -> float:
        return self.format.duration

    def by_type(self, codec_type: str) -> list[Stream]:
        """Get streams of one codec type, in source order."""
        return [s for s in self.streams if s.codec_type == codec_type]
