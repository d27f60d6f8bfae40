"""
Transcode pipeline.

Runs the encodes of one job as a linear sequence of stages:
V0 fallback, then every video rendition, then every audio rendition. Exactly
one encoder process runs at a time and the first failure aborts the rest.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..config import EncodeherConfig
from ..models import (
    AudioRendition,
    AudioTrack,
    PipelineStage,
    ProgressChannel,
    Resolution,
    Stream,
    VideoRendition,
)
from ..utils import JobLog, get_logger
from .audio import AudioEncoder
from .video import VideoEncoder

logger = get_logger(__name__)


@dataclass
class FallbackPlan:
    """Inputs of the single-file fallback encode."""

    video_index: int
    audio_index: int
    resolution: Resolution
    subtitle_index: Optional[int] = None


@dataclass
class PipelineResult:
    """Outputs of a finished pipeline run."""

    fallback: Path
    videos: list[VideoRendition] = field(default_factory=list)
    audio: list[AudioRendition] = field(default_factory=list)


class TranscodePipeline:
    """
    Sequential encoder state machine for one source file.
    """

    def __init__(
        self,
        input_file: Path,
        base_dir: Path,
        output_dir: Path,
        duration: float,
        job_log: JobLog,
        channel: Optional[ProgressChannel] = None,
        config: Optional[EncodeherConfig] = None,
    ):
        """
        Initialize pipeline.

        Args:
            input_file: Source media file
            base_dir: Job directory receiving the intermediate renditions
            output_dir: Job output directory receiving the fallback
            duration: Source duration in seconds, the progress total
            job_log: Job log receiving encoder diagnostics
            channel: Progress channel
            config: Encoder configuration
        """
        self.input_file = input_file
        self.base_dir = base_dir
        self.output_dir = output_dir
        self.duration = duration
        self.job_log = job_log
        self.channel = channel or ProgressChannel()
        self.config = config or EncodeherConfig.create_default()

        self.stage: Optional[PipelineStage] = None

        self.video_encoder = VideoEncoder(
            input_file,
            job_log,
            tools=self.config.tools,
            fallback=self.config.fallback,
            video=self.config.video,
        )
        self.audio_encoder = AudioEncoder(
            input_file, job_log, tools=self.config.tools, audio=self.config.audio
        )

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        logger.debug(f"Pipeline stage: {stage.value}")

    def _finish(self, item_id: str) -> None:
        assert self.stage is not None
        self.channel.emit(self.stage, item_id, self.duration, self.duration)

    async def run(
        self,
        fallback: FallbackPlan,
        video_stream: Stream,
        resolutions: Sequence[Resolution],
        audio_tracks: Sequence[AudioTrack],
    ) -> PipelineResult:
        """
        Run all encodes.

        Args:
            fallback: V0 inputs
            video_stream: Source video stream for the renditions
            resolutions: Resolution ladder
            audio_tracks: One track per audio rendition

        Returns:
            PipelineResult with the fallback path and all renditions

        Raises:
            EncodeFailure: On the first failed encode
        """
        self._enter(PipelineStage.V0_ENCODE)
        fallback_path = await self.video_encoder.encode_fallback(
            fallback.video_index,
            fallback.audio_index,
            fallback.subtitle_index,
            fallback.resolution,
            self.output_dir,
            progress_callback=self.channel.reporter(self.stage, "V0", self.duration),
        )
        self._finish("V0")
        result = PipelineResult(fallback=fallback_path)

        self._enter(PipelineStage.VIDEO_RENDITIONS)
        for resolution in resolutions:
            path = await self.video_encoder.encode_rendition(
                video_stream,
                resolution,
                self.base_dir,
                progress_callback=self.channel.reporter(self.stage, resolution.name, self.duration),
            )
            self._finish(resolution.name)
            result.videos.append(VideoRendition(path=path, resolution=resolution))

        self._enter(PipelineStage.AUDIO_RENDITIONS)
        for track in audio_tracks:
            path = await self.audio_encoder.encode(
                track,
                self.base_dir,
                progress_callback=self.channel.reporter(self.stage, track.lang, self.duration),
            )
            self._finish(track.lang)
            result.audio.append(AudioRendition(path=path, lang=track.lang, default=track.is_default))

        logger.info(
            f"Encoded fallback, {len(result.videos)} video and {len(result.audio)} audio rendition(s)"
        )
        return result
