"""
Packager invocation.

Hands the encoded renditions to Shaka Packager, which remuxes them into the
job output directory and writes the DASH manifest.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..executor import run_tool
from ..models import AudioRendition, VideoRendition
from ..utils import JobLog, PackagingFailure, ToolError, get_file_size, get_logger

logger = get_logger(__name__)

MPD_NAME = "manifest.mpd"


def video_descriptor(rendition: VideoRendition, output_dir: Path) -> str:
    output = output_dir / f"v{rendition.resolution.name}.webm"
    return f"in={rendition.path},stream=video,output={output}"


def audio_descriptor(rendition: AudioRendition, output_dir: Path) -> str:
    output = output_dir / f"a{rendition.lang}.webm"
    roles = ",roles=main" if rendition.default else ""
    return f"in={rendition.path},stream=audio,lang={rendition.lang}{roles},output={output}"


def build_packager_command(
    videos: Sequence[VideoRendition],
    audio: Sequence[AudioRendition],
    output_dir: Path,
    packager_path: str = "packager",
) -> List[str]:
    """
    Build the packager command line.

    Args:
        videos: Video renditions, in ladder order
        audio: Audio renditions
        output_dir: Job output directory
        packager_path: Packager executable

    Returns:
        Command as list of arguments
    """
    command = [packager_path]
    command.extend(video_descriptor(v, output_dir) for v in videos)
    command.extend(audio_descriptor(a, output_dir) for a in audio)
    command.extend(["--mpd_output", str(output_dir / MPD_NAME)])
    return command


async def package_renditions(
    videos: Sequence[VideoRendition],
    audio: Sequence[AudioRendition],
    output_dir: Path,
    job_log: Optional[JobLog] = None,
    packager_path: str = "packager",
) -> Path:
    """
    Package all renditions into a DASH presentation.

    Returns:
        Path to the written `manifest.mpd`

    Raises:
        PackagingFailure: If the packager fails or writes no manifest
    """
    command = build_packager_command(videos, audio, output_dir, packager_path)
    mpd_path = output_dir / MPD_NAME

    logger.info(f"Packaging {len(videos)} video and {len(audio)} audio rendition(s)")
    try:
        if job_log is not None:
            with job_log.region("Packager"):
                job_log.append(f"command: \n{' '.join(command)}\n")
                await run_tool(command, job_log=job_log, capture_stdout=False)
        else:
            await run_tool(command, capture_stdout=False)
    except ToolError as e:
        raise PackagingFailure(f"Packager failed: {e}") from e

    if get_file_size(mpd_path) == 0:
        raise PackagingFailure(f"Packager finished but {MPD_NAME} is missing or empty")

    return mpd_path
