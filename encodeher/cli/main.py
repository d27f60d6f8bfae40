"""
CLI interface for encodeher.

This module provides the command-line interface using Typer and Rich
for terminal output.
"""

import asyncio
import sys
import time
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..autopack import get_job_paths, run_job
from ..config import EncodeherConfig, SelectionConfig, get_config_manager
from ..inspector import MediaInspector
from ..planner import (
    audio_stream,
    plan_resolutions,
    subtitle_stream,
    video_stream,
)
from ..models import ProgressChannel
from ..ui import JobMonitor, SummaryReporter
from ..utils import ConfigurationError, EncodeherError, get_logger, setup_logger

# Initialize Typer app
app = typer.Typer(
    name="encodeher",
    help="Pack a video file into adaptive renditions, subtitles, fonts and a job manifest",
    add_completion=False,
)

# Console for rich output
console = Console()

# Logger
logger = get_logger(__name__)


def _load_config(
    config_file: Optional[Path],
    audio_lang: Optional[str] = None,
    subtitle_lang: Optional[str] = None,
) -> EncodeherConfig:
    """Load configuration and apply command-line overrides."""
    config_manager = get_config_manager()
    config = config_manager.load(config_file) if config_file else config_manager.config

    overrides = {}
    if audio_lang:
        overrides["audio_language"] = audio_lang.lower()
    if subtitle_lang:
        overrides["subtitle_language"] = subtitle_lang.lower()
    if overrides:
        try:
            selection = SelectionConfig(**{**config.selection.model_dump(), **overrides})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid language override: {e}") from e
        config = config.model_copy(update={"selection": selection})
    return config


@app.command()
def autopack(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Input video file to pack",
    ),
    job_id: str = typer.Argument(..., help="Job identifier, names the job directory"),
    base_dir: Optional[Path] = typer.Option(
        None,
        "--dir",
        "-d",
        help="Base directory for job trees (default: <tempdir>/weebify-encodeher)",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Custom configuration file",
    ),
    audio_lang: Optional[str] = typer.Option(
        None,
        "--audio-lang",
        help="Preferred default audio language (default: jpn)",
    ),
    subtitle_lang: Optional[str] = typer.Option(
        None,
        "--subtitle-lang",
        help="Preferred default subtitle language (default: eng)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log",
        help="Log file path",
    ),
) -> None:
    """
    Pack a video file.

    Probes the input, picks default tracks, extracts subtitles and fonts,
    encodes the fallback and every rendition, packages them and writes
    weebify.json into the job's out/ directory.
    """
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(
        name="encodeher",
        level=log_level,
        log_file=log_file,
        verbose=verbose,
        console=console,
    )

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]encodeher[/bold cyan]\n[dim]Job {job_id}: {input_file.name}[/dim]",
            border_style="cyan",
        )
    )
    console.print()

    try:
        config = _load_config(config_file, audio_lang, subtitle_lang)
        paths = get_job_paths(job_id, base_dir or config.workdir)

        channel = ProgressChannel()
        started = time.time()
        with JobMonitor(console=console, title=f"Job {job_id}") as monitor:
            channel.subscribe(monitor.handle)
            manifest = asyncio.run(
                run_job(input_file, job_id, base_dir=base_dir, config=config, channel=channel)
            )

        SummaryReporter(console).display_summary(
            manifest, output_dir=paths.outdir, elapsed=time.time() - started
        )
        console.print(
            Panel.fit(
                "[bold green]✓ Job completed successfully![/bold green]\n"
                f"[dim]Output: {paths.outdir}[/dim]",
                border_style="green",
            )
        )

    except KeyboardInterrupt:
        console.print("\n[yellow]⚠ Job cancelled by user[/yellow]")
        sys.exit(130)
    except (EncodeherError, ValueError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        sys.exit(1)


@app.command("probe")
def probe_command(
    input_file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Input video file to inspect",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        exists=True,
        dir_okay=False,
        help="Custom configuration file",
    ),
) -> None:
    """
    Show the streams of a file and the tracks autopack would pick.
    """
    try:
        config = _load_config(config_file)
        asyncio.run(_probe_async(input_file, config))
    except EncodeherError as e:
        console.print(f"[red]✗ Error:[/red] {e}")
        sys.exit(1)


async def _probe_async(input_file: Path, config: EncodeherConfig) -> None:
    tools = config.tools
    selection = config.selection
    inspector = MediaInspector(
        input_file,
        ffprobe_path=tools.ffprobe,
        ffmpeg_path=tools.ffmpeg,
        loglevel=tools.loglevel,
    )
    probe = await inspector.probe()
    streams = probe.streams

    table = Table(title=input_file.name, show_header=True)
    table.add_column("#", style="cyan", width=4)
    table.add_column("Type", style="yellow")
    table.add_column("Codec", style="green")
    table.add_column("Language", style="white")
    table.add_column("Title", style="white")
    table.add_column("Default", style="green")

    for stream in streams:
        table.add_row(
            str(stream.index),
            stream.codec_type,
            stream.codec_name,
            stream.language or "",
            stream.title or stream.filename or "",
            "✓" if stream.is_default else "",
        )

    console.print()
    console.print(table)
    console.print()

    video = video_stream(streams)
    audio = audio_stream(streams, selection.audio_language)
    subtitle = await subtitle_stream(
        streams,
        selection.subtitle_language,
        get_length=inspector.measure_subtitle_length,
        allow_undefined_language=selection.allow_undefined_language,
        exclude_signs_and_songs=selection.exclude_signs_and_songs,
    )

    ladder = plan_resolutions(video.width, video.height) if video.width and video.height else []
    console.print(f"[bold]Video:[/bold] #{video.index} ({video.width}x{video.height})")
    console.print(f"[bold]Ladder:[/bold] {', '.join(f'{r.name} {r.w}x{r.h}' for r in ladder)}")
    console.print(f"[bold]Audio:[/bold] #{audio.index} ({audio.language or 'unk'})")
    if subtitle is not None:
        console.print(f"[bold]Subtitle:[/bold] #{subtitle.index} ({subtitle.title or 'untitled'})")
    else:
        console.print("[bold]Subtitle:[/bold] [dim]none[/dim]")
    console.print(f"[bold]Chapters:[/bold] {len(probe.chapters)}")
    console.print()


@app.command("config")
def config_command(
    action: str = typer.Argument(..., help="Action: init, show"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file for 'init' action",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing file for 'init' action",
    ),
) -> None:
    """
    Manage configuration files.

    Actions:
    - init: Create a default configuration file
    - show: Display current configuration
    """
    config_manager = get_config_manager()

    if action == "init":
        output_path = output or Path(".encodeher.yaml")

        try:
            config_manager.init_default_config(output_path, force=force)
            console.print(f"[green]✓[/green] Created config file: {output_path}")
        except ConfigurationError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)

    elif action == "show":
        try:
            config = config_manager.config
        except ConfigurationError as e:
            console.print(f"[red]✗ Error:[/red] {e}")
            sys.exit(1)

        console.print()
        console.print(Panel("[bold cyan]Current Configuration[/bold cyan]", border_style="cyan"))
        console.print()

        sections = {
            "Tools": config.tools,
            "Selection": config.selection,
            "Fallback (V0)": config.fallback,
            "Video Renditions": config.video,
            "Audio Renditions": config.audio,
        }
        for title, section in sections.items():
            table = Table(title=title, show_header=True)
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="white")
            for key, value in section.model_dump().items():
                table.add_row(key, str(value))
            console.print(table)
            console.print()

        console.print(f"[bold]Work directory:[/bold] {config.workdir or '(system temp)'}")
        console.print()

    else:
        console.print(f"[red]✗ Unknown action:[/red] {action}")
        console.print("Valid actions: init, show")
        sys.exit(1)


@app.command("version")
def version_command() -> None:
    """
    Display version information.
    """
    from .. import __version__

    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]encodeher[/bold cyan]\n[dim]Version {__version__}[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def main() -> None:
    """
    Main entry point for CLI.
    """
    app()


if __name__ == "__main__":
    main()
