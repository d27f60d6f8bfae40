"""
Data models for selected tracks, renditions and the job manifest.

The job manifest is the only artifact that marks a job as complete; its
`to_dict()` layout is version 1 of `weebify.json`.
"""

from dataclasses import dataclass, field
from pathlib import Path

from encodeher.models.media import Chapter, Stream

MANIFEST_VERSION = 1
MANIFEST_NAME = "weebify.json"


@dataclass(frozen=True)
class Resolution:
    """A rung of the rendition ladder."""

    name: str
    w: int
    h: int

    @property
    def is_native(self) -> bool:
        return self.name == "native"

    def to_dict(self) -> dict:
        return {"name": self.name, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class AudioTrack:
    """An audio stream chosen for rendering, with its language label resolved."""

    stream: Stream
    lang: str
    is_default: bool = False


@dataclass(frozen=True)
class SubtitleTrack:
    """An extractable subtitle stream with its display name and language resolved."""

    stream: Stream
    name: str
    lang: str


@dataclass(frozen=True)
class SubtitleAsset:
    """A subtitle stream copied out to a standalone file."""

    name: str
    file: str
    lang: str
    default: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "lang": self.lang, "default": self.default, "file": self.file}


@dataclass(frozen=True)
class VideoRendition:
    """One encoded video rendition."""

    path: Path
    resolution: Resolution

    @property
    def file(self) -> str:
        return self.path.name

    def to_dict(self) -> dict:
        return {"file": self.file, "resolution": self.resolution.to_dict()}


@dataclass(frozen=True)
class AudioRendition:
    """One encoded audio rendition."""

    path: Path
    lang: str
    default: bool = False

    @property
    def file(self) -> str:
        return self.path.name

    def to_dict(self) -> dict:
        return {"file": self.file, "lang": self.lang, "default": self.default}


@dataclass
class JobManifest:
    """Portable description of a finished job."""

    job: str
    chapters: list[Chapter] = field(default_factory=list)
    subtitles: list[SubtitleAsset] = field(default_factory=list)
    font_map: dict[str, str] = field(default_factory=dict)
    audio: list[AudioRendition] = field(default_factory=list)
    videos: list[VideoRendition] = field(default_factory=list)
    version: int = MANIFEST_VERSION

    @property
    def default_subtitle(self) -> SubtitleAsset | None:
        return next((s for s in self.subtitles if s.default), None)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "job": self.job,
            "chapters": [c.to_dict() for c in self.chapters],
            "subtitles": [s.to_dict() for s in self.subtitles],
            "fontMap": dict(self.font_map),
            "audio": [a.to_dict() for a in self.audio],
            "videos": [v.to_dict() for v in self.videos],
        }
