"""
Job manifest assembly and persistence.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Mapping, Sequence

from ..models import (
    MANIFEST_NAME,
    AudioRendition,
    Chapter,
    JobManifest,
    SubtitleAsset,
    VideoRendition,
)
from ..utils import get_logger

logger = get_logger(__name__)


def assemble_manifest(
    job: str,
    chapters: Sequence[Chapter],
    subtitles: Sequence[SubtitleAsset],
    font_map: Mapping[str, str],
    audio: Sequence[AudioRendition],
    videos: Sequence[VideoRendition],
) -> JobManifest:
    """Aggregate stage outputs into a JobManifest."""
    return JobManifest(
        job=job,
        chapters=list(chapters),
        subtitles=list(subtitles),
        font_map=dict(font_map),
        audio=list(audio),
        videos=list(videos),
    )


def write_manifest(manifest: JobManifest, output_dir: Path) -> Path:
    """
    Write the manifest to `<output_dir>/weebify.json`.

    The file appears complete or not at all: content goes to a temporary file
    in the same directory which is then renamed over the target.

    Returns:
        Path to the manifest
    """
    manifest_path = output_dir / MANIFEST_NAME
    content = json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{MANIFEST_NAME}.", dir=output_dir)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_name, manifest_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Wrote job manifest: {manifest_path}")
    return manifest_path
