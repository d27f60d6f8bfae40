"""
Video encoding for the fallback file and the adaptive renditions.

The fallback ("V0") is a self-contained H.264/AAC MP4 with the default
subtitle burned in. Adaptive renditions are video-only AV1 WebM files, one per
rung of the resolution ladder.
"""

from pathlib import Path
from typing import Callable, List, Optional

from ..config import FallbackConfig, ToolsConfig, VideoConfig
from ..executor import run_tool
from ..models import Resolution, Stream
from ..utils import EncodeFailure, JobLog, ToolError, ff_escape, get_file_size, get_logger

logger = get_logger(__name__)

FALLBACK_NAME = "fallback.mp4"


class VideoEncoder:
    """
    Builds and runs ffmpeg video encodes against one source file.
    """

    def __init__(
        self,
        input_file: Path,
        job_log: JobLog,
        tools: Optional[ToolsConfig] = None,
        fallback: Optional[FallbackConfig] = None,
        video: Optional[VideoConfig] = None,
    ):
        """
        Initialize video encoder.

        Args:
            input_file: Source media file
            job_log: Job log receiving encoder diagnostics
            tools: Tool locations
            fallback: V0 encoder profile
            video: Adaptive rendition encoder profile
        """
        self.input_file = input_file
        self.job_log = job_log
        self.tools = tools or ToolsConfig()
        self.fallback = fallback or FallbackConfig()
        self.video = video or VideoConfig()

    def _base_args(self) -> List[str]:
        return [
            self.tools.ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel",
            self.tools.loglevel,
            "-stats",
            "-i",
            str(self.input_file),
        ]

    def build_fallback_command(
        self,
        video_index: int,
        audio_index: int,
        subtitle_index: Optional[int],
        resolution: Resolution,
        output_file: Path,
    ) -> List[str]:
        """
        Build the V0 command.

        Args:
            video_index: Global index of the video stream
            audio_index: Global index of the audio stream
            subtitle_index: Subtitle-relative index to burn in, or None
            resolution: Target resolution
            output_file: Output MP4 path

        Returns:
            ffmpeg command as list of arguments
        """
        profile = self.fallback
        command = self._base_args()
        command.extend(["-movflags", "+faststart", "-brand", "mp42"])
        command.extend(["-map", f"0:{video_index}", "-c:v", profile.video_codec])
        command.extend(
            ["-map", f"0:{audio_index}", "-c:a", profile.audio_codec, "-ac", str(profile.channels)]
        )

        filters = ["format=yuv420p", f"scale={resolution.w}:{resolution.h}"]
        if subtitle_index is not None:
            # The filter argument is parsed twice: once as a filtergraph, once as an option
            source = ff_escape(ff_escape(str(self.input_file)))
            filters.append(f"subtitles={source}:si={subtitle_index}")
        command.extend(["-vf", ",".join(filters)])

        command.extend(["-f", "mp4", "-crf", str(profile.crf), "-preset", profile.preset])
        if profile.tune:
            command.extend(["-tune", profile.tune])
        command.extend(["-bf", str(profile.bframes), "-g", str(profile.gop)])
        command.append(str(output_file))
        return command

    def build_rendition_command(
        self, video_stream: Stream, resolution: Resolution, output_file: Path
    ) -> List[str]:
        """
        Build an adaptive video rendition command.

        The native rung is encoded without a scale filter.
        """
        profile = self.video
        command = self._base_args()
        command.append("-an")

        if not resolution.is_native:
            command.extend(["-vf", f"scale={resolution.w}:{resolution.h}"])

        command.extend(
            [
                "-map",
                f"0:{video_stream.index}",
                "-c:v",
                profile.codec,
                "-g",
                str(profile.gop),
                "-preset",
                str(profile.preset),
                "-crf",
                str(profile.crf),
            ]
        )
        if profile.codec_params:
            command.extend(["-svtav1-params", profile.codec_params])
        command.append(str(output_file))
        return command

    async def encode_fallback(
        self,
        video_index: int,
        audio_index: int,
        subtitle_index: Optional[int],
        resolution: Resolution,
        output_dir: Path,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> Path:
        """
        Encode the single-file fallback.

        Returns:
            Path to the fallback MP4

        Raises:
            EncodeFailure: If ffmpeg fails or produces no output
        """
        output_file = output_dir / FALLBACK_NAME
        command = self.build_fallback_command(
            video_index, audio_index, subtitle_index, resolution, output_file
        )
        logger.info(f"Encoding fallback at {resolution.w}x{resolution.h}")
        with self.job_log.region("Video V0"):
            await self._encode(command, output_file, progress_callback)
        return output_file

    async def encode_rendition(
        self,
        video_stream: Stream,
        resolution: Resolution,
        output_dir: Path,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> Path:
        """
        Encode one adaptive video rendition.

        Returns:
            Path to the rendition file (`v<name>.webm`)

        Raises:
            EncodeFailure: If ffmpeg fails or produces no output
        """
        output_file = output_dir / f"v{resolution.name}.webm"
        command = self.build_rendition_command(video_stream, resolution, output_file)
        logger.info(f"Encoding video {resolution.name} ({resolution.w}x{resolution.h})")
        with self.job_log.region(f"Video {resolution.name}"):
            await self._encode(command, output_file, progress_callback)
        return output_file

    async def _encode(
        self,
        command: List[str],
        output_file: Path,
        progress_callback: Optional[Callable[[float], None]],
    ) -> None:
        self.job_log.append(f"command: \n{' '.join(command)}\n")
        try:
            await run_tool(
                command,
                job_log=self.job_log,
                progress_callback=progress_callback,
                capture_stdout=False,
            )
        except ToolError as e:
            raise EncodeFailure(f"Failed to encode {output_file.name}: {e}") from e

        if get_file_size(output_file) == 0:
            raise EncodeFailure(f"Encoding finished but {output_file.name} is missing or empty")
