"""
Subtitle extraction.

Advanced SubStation Alpha tracks are copied losslessly into standalone `.ass`
files named after a slug of their display name.
"""

from pathlib import Path
from typing import List, Optional

from ..config import ToolsConfig
from ..executor import run_tool
from ..models import Stream, SubtitleAsset, SubtitleTrack
from ..utils import ExtractionFailure, JobLog, ToolError, get_file_size, get_logger, slugify

logger = get_logger(__name__)

SUBTITLE_FORMAT = "ass"


class SubtitleExtractor:
    """
    Copies single subtitle streams out of the source container.
    """

    def __init__(
        self,
        input_file: Path,
        output_dir: Path,
        job_log: JobLog,
        tools: Optional[ToolsConfig] = None,
    ):
        """
        Initialize subtitle extractor.

        Args:
            input_file: Source media file
            output_dir: Directory receiving the subtitle files
            job_log: Job log receiving ffmpeg diagnostics
            tools: Tool locations
        """
        self.input_file = input_file
        self.output_dir = output_dir
        self.job_log = job_log
        self.tools = tools or ToolsConfig()
        self._used_names: set[str] = set()

    def output_name(self, track: SubtitleTrack) -> str:
        """
        File name for a track, unique among the names this extractor handed out.

        Tracks sharing a display name get their stream index appended.
        """
        stem = slugify(track.name)
        while f"{stem}.{SUBTITLE_FORMAT}" in self._used_names:
            stem = f"{stem}-{track.stream.index}"
        return f"{stem}.{SUBTITLE_FORMAT}"

    def build_command(self, index: int, output_file: Path) -> List[str]:
        return [
            self.tools.ffmpeg,
            "-loglevel",
            self.tools.loglevel,
            "-y",
            "-i",
            str(self.input_file),
            "-map",
            f"0:{index}",
            "-c",
            "copy",
            "-f",
            SUBTITLE_FORMAT,
            str(output_file),
        ]

    async def extract(self, track: SubtitleTrack, selected: Optional[Stream]) -> SubtitleAsset:
        """
        Extract one subtitle track.

        Args:
            track: Track to extract
            selected: The job's default subtitle stream, if any

        Returns:
            SubtitleAsset describing the written file

        Raises:
            ExtractionFailure: If ffmpeg fails or the file is not written
        """
        file_name = self.output_name(track)
        self._used_names.add(file_name)
        output_file = self.output_dir / file_name
        index = track.stream.index

        logger.info(f"Extracting subtitle stream #{index} to {file_name}")
        with self.job_log.region(f"Extract stream {index}"):
            try:
                await run_tool(self.build_command(index, output_file), job_log=self.job_log)
            except ToolError as e:
                raise ExtractionFailure(f"Failed to extract subtitle stream #{index}: {e}") from e

        if get_file_size(output_file) == 0:
            raise ExtractionFailure(f"Subtitle stream #{index} produced no {file_name}")

        return SubtitleAsset(
            name=track.name,
            file=file_name,
            lang=track.lang,
            default=selected is not None and track.stream.index == selected.index,
        )
