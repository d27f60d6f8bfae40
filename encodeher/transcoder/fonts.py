"""
Embedded font extraction with content-addressed deduplication.
"""

import hashlib
import os
from pathlib import Path
from typing import List, Optional

from ..config import ToolsConfig
from ..executor import run_tool
from ..models import Stream
from ..utils import (
    ExtractionFailure,
    HashFailure,
    JobLog,
    MissingAttachmentFilename,
    get_file_size,
    get_logger,
)

logger = get_logger(__name__)

FONT_DIR_NAME = "fonts"
HASH_CHUNK_SIZE = 1024 * 1024
DUMP_PREFIX = ".dump-"


def md5_file(path: Path) -> str:
    """
    Compute the MD5 digest of a file.

    Raises:
        HashFailure: If the file cannot be read
    """
    digest = hashlib.md5()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        raise HashFailure(f"Failed to hash {path.name}: {e}") from e
    return digest.hexdigest()


class FontExtractor:
    """
    Dumps font attachments and renames them to `<md5>-<filename>`.

    Two attachments with identical bytes and filename land on the same file,
    so re-dumping is idempotent.
    """

    def __init__(
        self,
        input_file: Path,
        font_dir: Path,
        job_log: JobLog,
        tools: Optional[ToolsConfig] = None,
    ):
        self.input_file = input_file
        self.font_dir = font_dir
        self.job_log = job_log
        self.tools = tools or ToolsConfig()

    def build_command(self, index: int, output_file: Path) -> List[str]:
        return [
            self.tools.ffmpeg,
            "-loglevel",
            self.tools.loglevel,
            "-y",
            f"-dump_attachment:{index}",
            str(output_file),
            "-i",
            str(self.input_file),
        ]

    async def extract(self, stream: Stream) -> tuple[str, str]:
        """
        Dump one font attachment.

        Args:
            stream: Attachment stream

        Returns:
            Tuple of (original filename, path relative to the job directory)

        Raises:
            MissingAttachmentFilename: If the stream has no filename tag
            ExtractionFailure: If the filename is not a plain file name, nothing was
                written, or the dump cannot be moved into place
            HashFailure: If the dumped file cannot be read
        """
        filename = stream.filename
        if not filename:
            raise MissingAttachmentFilename(stream.index)

        if Path(filename).name != filename or filename in (".", ".."):
            raise ExtractionFailure(
                f"Attachment #{stream.index} has an unsafe filename: {filename!r}"
            )

        dumped = self.font_dir / f"{DUMP_PREFIX}{stream.index}"
        logger.info(f"Dumping font attachment #{stream.index} ({filename})")

        with self.job_log.region(f"Dump attachment {stream.index}"):
            # ffmpeg exits non-zero after dumping because there is no output file
            await run_tool(
                self.build_command(stream.index, dumped),
                job_log=self.job_log,
                capture_stdout=False,
                check=False,
            )

        if get_file_size(dumped) == 0:
            raise ExtractionFailure(f"Attachment #{stream.index} ({filename}) was not dumped")

        checksum = md5_file(dumped)
        stored_name = f"{checksum}-{filename}"
        try:
            os.replace(dumped, self.font_dir / stored_name)
        except OSError as e:
            dumped.unlink(missing_ok=True)
            raise ExtractionFailure(f"Failed to store font {filename}: {e}") from e

        return filename, f"{FONT_DIR_NAME}/{stored_name}"
