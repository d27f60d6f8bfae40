"""
Autopack job orchestration.

A job turns one source file into a directory tree:

    <base>/<job>/
        encodeher.log          diagnostic trail
        v<name>.webm ...       intermediate renditions
        a<lang>.webm ...
        fonts/                 deduplicated font attachments
        out/                   packaged renditions, subtitles, fallback.mp4,
                               manifest.mpd and weebify.json

Stages run strictly in order and each stage's output gates the next. The job
log is closed on every exit path, with the failure reason when one occurs.
"""

import shutil
import tempfile
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import EncodeherConfig
from .inspector import MediaInspector
from .models import JobManifest, PipelineStage, ProgressChannel
from .packager import assemble_manifest, package_renditions, write_manifest
from .planner import (
    ass_subtitles,
    audio_stream,
    describe_audio,
    pick_fallback_resolution,
    plan_resolutions,
    subtitle_filter_index,
    subtitle_stream,
    supported_fonts,
    unique_language_audio,
    video_stream,
)
from .transcoder import AssetExtractor, FallbackPlan, TranscodePipeline
from .utils import JobLog, ProbeFailure, get_logger

logger = get_logger(__name__)

DEFAULT_BASE_NAME = "weebify-encodeher"
FONT_DIR = "fonts"
OUTPUT_DIR = "out"

METADATA_STEPS = 3


@dataclass(frozen=True)
class JobPaths:
    """Directory tree owned by one job id."""

    basedir: Path
    fontdir: Path
    outdir: Path


def default_base_dir() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_BASE_NAME


def get_job_paths(job_id: str, base_dir: Optional[Path] = None) -> JobPaths:
    """
    Resolve the directory tree of a job.

    Args:
        job_id: Job identifier, used as a single directory name
        base_dir: Parent of all job trees (default: `<tempdir>/weebify-encodeher`)

    Raises:
        ValueError: If the job id is not usable as a directory name
    """
    if not job_id or job_id in (".", "..") or "/" in job_id or "\\" in job_id:
        raise ValueError(f"Invalid job id: {job_id!r}")

    basedir = Path(base_dir or default_base_dir()) / job_id
    return JobPaths(basedir=basedir, fontdir=basedir / FONT_DIR, outdir=basedir / OUTPUT_DIR)


def prepare_job_dir(paths: JobPaths) -> None:
    """Destroy any previous tree of the job and create an empty one."""
    if paths.basedir.exists():
        logger.debug(f"Removing previous job tree: {paths.basedir}")
        shutil.rmtree(paths.basedir)
    paths.basedir.mkdir(parents=True)
    paths.fontdir.mkdir()
    paths.outdir.mkdir()


@dataclass
class JobContext:
    """Everything one running job needs."""

    job_id: str
    input_file: Path
    paths: JobPaths
    log: JobLog
    config: EncodeherConfig = field(default_factory=EncodeherConfig.create_default)
    channel: ProgressChannel = field(default_factory=ProgressChannel)


async def pack(ctx: JobContext) -> JobManifest:
    """
    Run every stage of a job inside an already prepared tree.

    Returns:
        The written JobManifest

    Raises:
        EncodeherError: On the first failing stage
    """
    config = ctx.config
    tools = config.tools
    selection = config.selection
    channel = ctx.channel
    job_log = ctx.log

    inspector = MediaInspector(
        ctx.input_file,
        job_log=job_log,
        ffprobe_path=tools.ffprobe,
        ffmpeg_path=tools.ffmpeg,
        loglevel=tools.loglevel,
    )

    with job_log.region("Gathering metadata"):
        channel.emit(PipelineStage.METADATA, "probe", 0, METADATA_STEPS)
        probe = await inspector.probe()
        streams = probe.streams

        source_video = video_stream(streams)
        if not source_video.width or not source_video.height:
            raise ProbeFailure(f"Video stream #{source_video.index} has no dimensions")
        resolutions = plan_resolutions(source_video.width, source_video.height)

        channel.emit(PipelineStage.METADATA, "selection", 1, METADATA_STEPS)
        default_audio = audio_stream(streams, selection.audio_language)
        default_subtitle = await subtitle_stream(
            streams,
            selection.subtitle_language,
            get_length=inspector.measure_subtitle_length,
            allow_undefined_language=selection.allow_undefined_language,
            exclude_signs_and_songs=selection.exclude_signs_and_songs,
        )
        audio_tracks = [
            describe_audio(s, default_audio) for s in unique_language_audio(streams, default_audio)
        ]

        channel.emit(PipelineStage.METADATA, "chapters", 2, METADATA_STEPS)
        chapters = list(probe.chapters)
        channel.emit(PipelineStage.METADATA, "chapters", METADATA_STEPS, METADATA_STEPS)

    logger.info(
        f"Selected video #{source_video.index}, audio #{default_audio.index}, "
        f"subtitle {'#' + str(default_subtitle.index) if default_subtitle else 'none'}"
    )
    logger.info(f"Resolution ladder: {', '.join(r.name for r in resolutions)}")

    subtitle_streams = ass_subtitles(streams)
    font_streams = supported_fonts(streams)
    duration = probe.duration

    # Announce every work item up front so progress displays can lay out all rows
    channel.emit(PipelineStage.SUBTITLES, "subtitles", 0, len(subtitle_streams))
    channel.emit(PipelineStage.FONTS, "fonts", 0, len(font_streams))
    channel.emit(PipelineStage.V0_ENCODE, "V0", 0, duration)
    for resolution in resolutions:
        channel.emit(PipelineStage.VIDEO_RENDITIONS, resolution.name, 0, duration)
    for track in audio_tracks:
        channel.emit(PipelineStage.AUDIO_RENDITIONS, track.lang, 0, duration)

    extractor = AssetExtractor(
        ctx.input_file,
        ctx.paths.outdir,
        ctx.paths.fontdir,
        job_log,
        channel=channel,
        tools=tools,
    )
    with job_log.region("Dumping subs and fonts"):
        subtitles = await extractor.extract_subtitles(subtitle_streams, default_subtitle)
        font_map = await extractor.extract_fonts(font_streams)

    pipeline = TranscodePipeline(
        ctx.input_file,
        ctx.paths.basedir,
        ctx.paths.outdir,
        duration,
        job_log,
        channel=channel,
        config=config,
    )
    fallback = FallbackPlan(
        video_index=source_video.index,
        audio_index=default_audio.index,
        resolution=pick_fallback_resolution(resolutions),
        subtitle_index=subtitle_filter_index(streams, default_subtitle),
    )
    with job_log.region("Encoding"):
        encoded = await pipeline.run(fallback, source_video, resolutions, audio_tracks)

    channel.emit(PipelineStage.PACKAGING, "dash", 0, 1)
    await package_renditions(
        encoded.videos,
        encoded.audio,
        ctx.paths.outdir,
        job_log=job_log,
        packager_path=tools.packager,
    )
    channel.emit(PipelineStage.PACKAGING, "dash", 1, 1)

    manifest = assemble_manifest(
        job=ctx.job_id,
        chapters=chapters,
        subtitles=subtitles,
        font_map=font_map,
        audio=encoded.audio,
        videos=encoded.videos,
    )
    job_log.append("Writing weebify manifest\n")
    write_manifest(manifest, ctx.paths.outdir)
    return manifest


async def run_job(
    input_file: Path,
    job_id: str,
    base_dir: Optional[Path] = None,
    config: Optional[EncodeherConfig] = None,
    channel: Optional[ProgressChannel] = None,
) -> JobManifest:
    """
    Prepare a job tree, run the job and close its log.

    On failure a "Global Error" region with the traceback is written, the log
    is closed with the error as reason, and the error is re-raised.

    Args:
        input_file: Source media file
        job_id: Job identifier
        base_dir: Parent of all job trees (default: config workdir, then temp)
        config: Configuration (default: built-in defaults)
        channel: Progress channel

    Returns:
        The written JobManifest
    """
    config = config or EncodeherConfig.create_default()
    if not input_file.is_file():
        raise ProbeFailure(f"Input file not found: {input_file}")

    paths = get_job_paths(job_id, base_dir or config.workdir)
    prepare_job_dir(paths)

    ctx = JobContext(
        job_id=job_id,
        input_file=input_file,
        paths=paths,
        log=JobLog(paths.basedir),
        config=config,
        channel=channel or ProgressChannel(),
    )
    logger.info(f"Job {job_id}: {input_file} -> {paths.basedir}")

    try:
        manifest = await pack(ctx)
    except BaseException as e:
        with ctx.log.region("Global Error"):
            ctx.log.append("".join(traceback.format_exception(type(e), e, e.__traceback__)))
        ctx.log.close(f"{type(e).__name__}: {e}")
        raise

    ctx.log.close("Done!")
    return manifest
