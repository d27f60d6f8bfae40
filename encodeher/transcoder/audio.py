"""
Audio encoding for the adaptive renditions.

One Opus WebM file per selected language, downmixed and resampled to the
configured policy.
"""

from pathlib import Path
from typing import Callable, List, Optional

from ..config import AudioConfig, ToolsConfig
from ..executor import run_tool
from ..models import AudioTrack
from ..utils import EncodeFailure, JobLog, ToolError, get_file_size, get_logger

logger = get_logger(__name__)


class AudioEncoder:
    """
    Builds and runs ffmpeg audio encodes against one source file.
    """

    def __init__(
        self,
        input_file: Path,
        job_log: JobLog,
        tools: Optional[ToolsConfig] = None,
        audio: Optional[AudioConfig] = None,
    ):
        self.input_file = input_file
        self.job_log = job_log
        self.tools = tools or ToolsConfig()
        self.audio = audio or AudioConfig()

    def build_command(self, track: AudioTrack, output_file: Path) -> List[str]:
        """
        Build an audio rendition command.

        Args:
            track: Audio track to encode
            output_file: Output WebM path

        Returns:
            ffmpeg command as list of arguments
        """
        profile = self.audio
        return [
            self.tools.ffmpeg,
            "-y",
            "-hide_banner",
            "-loglevel",
            self.tools.loglevel,
            "-stats",
            "-i",
            str(self.input_file),
            "-vn",
            "-map",
            f"0:{track.stream.index}",
            "-c:a",
            profile.codec,
            "-b:a",
            profile.bitrate,
            "-ar",
            str(profile.sample_rate),
            "-ac",
            str(profile.channels),
            str(output_file),
        ]

    async def encode(
        self,
        track: AudioTrack,
        output_dir: Path,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> Path:
        """
        Encode one audio rendition.

        Returns:
            Path to the rendition file (`a<lang>.webm`)

        Raises:
            EncodeFailure: If ffmpeg fails or produces no output
        """
        output_file = output_dir / f"a{track.lang}.webm"
        command = self.build_command(track, output_file)

        logger.info(f"Encoding audio {track.lang} from stream #{track.stream.index}")
        with self.job_log.region(f"Audio {track.lang}"):
            self.job_log.append(f"command: \n{' '.join(command)}\n")
            try:
                await run_tool(
                    command,
                    job_log=self.job_log,
                    progress_callback=progress_callback,
                    capture_stdout=False,
                )
            except ToolError as e:
                raise EncodeFailure(f"Failed to encode audio {track.lang}: {e}") from e

        if get_file_size(output_file) == 0:
            raise EncodeFailure(f"Encoding finished but {output_file.name} is missing or empty")

        return output_file
