"""
Media inspection using FFprobe.

This module probes a source container once per job and turns ffprobe's JSON
into the immutable ProbeResult model: container format, every stream and the
chapter list.
"""

import json
from pathlib import Path
from typing import Any, Optional

from ..executor import run_tool
from ..models import Chapter, FormatInfo, ProbeResult, Stream
from ..utils import JobLog, ProbeFailure, SubtitleLengthProbeFailure, ToolError, get_logger

logger = get_logger(__name__)


class MediaInspector:
    """
    Inspects a source file using ffprobe.

    Besides the main probe it can measure the decoded text size of a subtitle
    stream, which the subtitle selector uses as a tie-break.
    """

    def __init__(
        self,
        input_file: Path,
        job_log: Optional[JobLog] = None,
        ffprobe_path: str = "ffprobe",
        ffmpeg_path: str = "ffmpeg",
        loglevel: str = "24",
    ):
        """
        Initialize media inspector.

        Args:
            input_file: Source media file
            job_log: Job log receiving tool diagnostics
            ffprobe_path: Path to ffprobe executable
            ffmpeg_path: Path to ffmpeg executable (used for length probes)
            loglevel: ffmpeg/ffprobe -loglevel value
        """
        self.input_file = input_file
        self.job_log = job_log
        self._ffprobe_path = ffprobe_path
        self._ffmpeg_path = ffmpeg_path
        self._loglevel = loglevel

    async def probe(self) -> ProbeResult:
        """
        Probe format, streams and chapters.

        Returns:
            ProbeResult for the source file

        Raises:
            ProbeFailure: If the file is missing, ffprobe fails, or its output is unusable
        """
        if not self.input_file.is_file():
            raise ProbeFailure(f"File not found: {self.input_file}")

        logger.info(f"Probing {self.input_file.name}")

        command = [
            self._ffprobe_path,
            "-loglevel",
            self._loglevel,
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            "-show_chapters",
            str(self.input_file),
        ]

        try:
            if self.job_log is not None:
                with self.job_log.region("Streams, format and chapters"):
                    result = await run_tool(command, job_log=self.job_log)
            else:
                result = await run_tool(command)
        except ToolError as e:
            raise ProbeFailure(f"ffprobe failed: {e}") from e

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeFailure(f"Failed to parse ffprobe output: {e}") from e

        probe = parse_probe_output(data)
        logger.debug(
            f"Found {len(probe.streams)} streams and {len(probe.chapters)} chapters, "
            f"duration {probe.duration:.2f}s"
        )
        return probe

    async def measure_subtitle_length(self, index: int) -> int:
        """
        Decode a subtitle stream to SRT and count the bytes produced.

        Args:
            index: Global stream index

        Returns:
            Size of the decoded text in bytes

        Raises:
            SubtitleLengthProbeFailure: If ffmpeg fails
        """
        command = [
            self._ffmpeg_path,
            "-loglevel",
            self._loglevel,
            "-i",
            str(self.input_file),
            "-map",
            f"0:{index}",
            "-f",
            "srt",
            "-",
        ]

        try:
            if self.job_log is not None:
                with self.job_log.region(f"Stream #{index} length as srt"):
                    result = await run_tool(command, job_log=self.job_log, capture_stdout=False)
            else:
                result = await run_tool(command, capture_stdout=False)
        except ToolError as e:
            raise SubtitleLengthProbeFailure(
                f"Could not measure subtitle stream #{index}: {e}"
            ) from e

        logger.debug(f"Subtitle stream #{index} decodes to {result.stdout_size} bytes")
        return result.stdout_size


def parse_probe_output(data: Any) -> ProbeResult:
    """
    Build a ProbeResult from decoded ffprobe JSON.

    Args:
        data: Decoded `-show_format -show_streams -show_chapters` output

    Returns:
        ProbeResult

    Raises:
        ProbeFailure: If required fields are missing or malformed
    """
    if not isinstance(data, dict):
        raise ProbeFailure("ffprobe output is not a JSON object")

    try:
        format_data = data.get("format") or {}
        format_info = FormatInfo(
            duration=float(format_data["duration"]),
            format_name=format_data.get("format_name", ""),
            tags=dict(format_data.get("tags") or {}),
        )

        streams = tuple(_parse_stream(s) for s in data.get("streams") or [])
        chapters = tuple(_parse_chapter(c) for c in data.get("chapters") or [])
    except (KeyError, TypeError, ValueError) as e:
        raise ProbeFailure(f"Malformed ffprobe output: {e!r}") from e

    return ProbeResult(format=format_info, streams=streams, chapters=chapters)


def _parse_stream(stream: dict) -> Stream:
    disposition = {
        key: bool(int(value)) for key, value in (stream.get("disposition") or {}).items()
    }
    width = stream.get("width")
    height = stream.get("height")

    return Stream(
        index=int(stream["index"]),
        codec_type=stream.get("codec_type", ""),
        codec_name=stream.get("codec_name", ""),
        tags=dict(stream.get("tags") or {}),
        disposition=disposition,
        width=int(width) if width is not None else None,
        height=int(height) if height is not None else None,
    )


def _parse_chapter(chapter: dict) -> Chapter:
    title = (chapter.get("tags") or {}).get("title")
    return Chapter(
        start=float(chapter["start_time"]),
        end=float(chapter["end_time"]),
        title="?" if title is None else title,
    )
