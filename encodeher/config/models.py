"""
Configuration models using Pydantic.

This module defines the configuration structure for encodeher: external tool
locations, the working directory, stream selection preferences and the fixed
encoder profiles used for each rendition kind.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

X264_PRESETS = [
    "ultrafast",
    "superfast",
    "veryfast",
    "faster",
    "fast",
    "medium",
    "slow",
    "slower",
    "veryslow",
]


class ToolsConfig(BaseModel):
    """Locations of the external tools."""

    ffmpeg: str = Field(default="ffmpeg", description="ffmpeg executable")
    ffprobe: str = Field(default="ffprobe", description="ffprobe executable")
    packager: str = Field(default="packager", description="Shaka packager executable")
    loglevel: str = Field(default="24", description="ffmpeg -loglevel value (24 = warning)")


class SelectionConfig(BaseModel):
    """
    Default stream selection preferences.

    The sign/song exclusion and the longest-track tie-break are approximate
    heuristics; they pick the full dialogue track for typical releases and
    nothing more.
    """

    audio_language: str = Field(default="jpn", description="Preferred audio language")
    subtitle_language: str = Field(default="eng", description="Preferred subtitle language")
    allow_undefined_language: bool = Field(
        default=True, description="Fall back to 'und'/untagged subtitles when none match"
    )
    exclude_signs_and_songs: bool = Field(
        default=True, description="Skip subtitle tracks titled 'signs' or 'songs'"
    )

    @field_validator("audio_language", "subtitle_language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        """Validate language tag."""
        if not v or not v.isalpha():
            raise ValueError("language must be an alphabetic tag such as 'jpn'")
        return v.lower()


class FallbackConfig(BaseModel):
    """Encoder settings for the single-file V0 fallback (H.264 + AAC in MP4)."""

    video_codec: str = Field(default="libx264")
    audio_codec: str = Field(default="aac")
    crf: int = Field(default=23, ge=0, le=51, description="Constant Rate Factor")
    preset: str = Field(default="slow")
    tune: Optional[str] = Field(default="animation")
    bframes: int = Field(default=2, ge=0, le=16)
    gop: int = Field(default=90, ge=1)
    channels: int = Field(default=2, ge=1, le=8)

    @field_validator("preset")
    @classmethod
    def validate_preset(cls, v: str) -> str:
        """Validate encoding preset."""
        if v.lower() not in X264_PRESETS:
            raise ValueError(f"preset must be one of {X264_PRESETS}")
        return v.lower()


class VideoConfig(BaseModel):
    """Encoder settings for the adaptive video renditions (AV1 in WebM)."""

    codec: str = Field(default="libsvtav1")
    preset: int = Field(default=7, ge=0, le=13, description="SVT-AV1 preset")
    crf: int = Field(default=33, ge=0, le=63)
    gop: int = Field(default=90, ge=1)
    codec_params: Optional[str] = Field(
        default="tune=0:film-grain=2", description="Passed as -svtav1-params"
    )


class AudioConfig(BaseModel):
    """Encoder settings for the adaptive audio renditions (Opus in WebM)."""

    codec: str = Field(default="libopus")
    bitrate: str = Field(default="96k")
    sample_rate: int = Field(default=48000)
    channels: int = Field(default=2, ge=1, le=8)

    @field_validator("bitrate")
    @classmethod
    def validate_bitrate(cls, v: str) -> str:
        """Validate bitrate string such as '96k'."""
        if not v.rstrip("kKmM").isdigit():
            raise ValueError("bitrate must look like '96k'")
        return v

    @field_validator("sample_rate")
    @classmethod
    def validate_sample_rate(cls, v: int) -> int:
        """Validate sample rate."""
        if v not in [8000, 12000, 16000, 24000, 44100, 48000]:
            raise ValueError("sample_rate must be a standard audio sample rate")
        return v


class EncodeherConfig(BaseModel):
    """Main encodeher configuration."""

    workdir: Optional[Path] = Field(
        default=None, description="Base directory for job trees (default: system temp)"
    )
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    selection: SelectionConfig = Field(default_factory=SelectionConfig)
    fallback: FallbackConfig = Field(default_factory=FallbackConfig)
    video: VideoConfig = Field(default_factory=VideoConfig)
    audio: AudioConfig = Field(default_factory=AudioConfig)

    @classmethod
    def create_default(cls) -> "EncodeherConfig":
        """Create default configuration."""
        return cls()
