"""
Asset extraction: subtitle tracks and embedded fonts.

Items are processed one at a time, in list order, and each finished item is
reported on the progress channel.
"""

from pathlib import Path
from typing import Optional, Sequence

from ..config import ToolsConfig
from ..models import PipelineStage, ProgressChannel, Stream, SubtitleAsset
from ..planner import describe_subtitle
from ..utils import JobLog, get_logger
from .fonts import FontExtractor
from .subtitle import SubtitleExtractor

logger = get_logger(__name__)


class AssetExtractor:
    """
    Extracts the side assets a player needs next to the renditions.
    """

    def __init__(
        self,
        input_file: Path,
        output_dir: Path,
        font_dir: Path,
        job_log: JobLog,
        channel: Optional[ProgressChannel] = None,
        tools: Optional[ToolsConfig] = None,
    ):
        """
        Initialize asset extractor.

        Args:
            input_file: Source media file
            output_dir: Directory receiving subtitle files
            font_dir: Directory receiving deduplicated fonts
            job_log: Job log receiving ffmpeg diagnostics
            channel: Progress channel, if anyone listens
            tools: Tool locations
        """
        self.channel = channel or ProgressChannel()
        self.subtitles = SubtitleExtractor(input_file, output_dir, job_log, tools)
        self.fonts = FontExtractor(input_file, font_dir, job_log, tools)

    async def extract_subtitles(
        self, streams: Sequence[Stream], selected: Optional[Stream]
    ) -> list[SubtitleAsset]:
        """
        Extract every given subtitle stream.

        Args:
            streams: Advanced subtitle streams to extract
            selected: The default subtitle stream, if any

        Returns:
            One SubtitleAsset per stream, in order
        """
        total = len(streams)
        assets: list[SubtitleAsset] = []

        for done, stream in enumerate(streams, start=1):
            asset = await self.subtitles.extract(describe_subtitle(stream), selected)
            assets.append(asset)
            self.channel.emit(PipelineStage.SUBTITLES, asset.file, done, total)

        logger.info(f"Extracted {len(assets)} subtitle track(s)")
        return assets

    async def extract_fonts(self, streams: Sequence[Stream]) -> dict[str, str]:
        """
        Dump and deduplicate every given font attachment.

        Args:
            streams: Font attachment streams

        Returns:
            Map of original filename to `fonts/<md5>-<filename>`
        """
        total = len(streams)
        font_map: dict[str, str] = {}

        for done, stream in enumerate(streams, start=1):
            filename, stored = await self.fonts.extract(stream)
            font_map[filename] = stored
            self.channel.emit(PipelineStage.FONTS, filename, done, total)

        logger.info(f"Extracted {len(font_map)} font(s)")
        return font_map
