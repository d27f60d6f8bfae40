"""
Summary reporting for finished jobs.

Renders the job manifest as Rich tables and an output tree.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from ..models import MANIFEST_NAME, JobManifest
from ..utils import format_duration, format_size, get_file_size, get_logger

logger = get_logger(__name__)


class SummaryReporter:
    """
    Reporter for displaying job results.

    This class creates formatted console output for:
    - Overview counts
    - Video and audio renditions
    - Subtitle assets
    - Output file locations
    """

    def __init__(self, console: Optional[Console] = None):
        """
        Initialize summary reporter.

        Args:
            console: Rich console instance (creates new if not provided)
        """
        self.console = console or Console()

    def display_summary(
        self,
        manifest: JobManifest,
        output_dir: Optional[Path] = None,
        elapsed: Optional[float] = None,
    ) -> None:
        """
        Display complete job summary.

        Args:
            manifest: The written job manifest
            output_dir: Job output directory, for file sizes and locations
            elapsed: Wall-clock job duration in seconds
        """
        self.console.print()
        self.console.rule(f"[bold green]Job {manifest.job} complete", style="green")
        self.console.print()

        self._display_overview(manifest, elapsed)

        if manifest.videos:
            self._display_video_renditions(manifest, output_dir)

        if manifest.audio:
            self._display_audio_renditions(manifest, output_dir)

        if manifest.subtitles:
            self._display_subtitles(manifest)

        if output_dir is not None:
            self._display_output_location(manifest, output_dir)

        self.console.print()

    def _display_overview(self, manifest: JobManifest, elapsed: Optional[float]) -> None:
        table = Table(title="Overview", show_header=False, box=None)
        table.add_column("Metric", style="cyan", width=30)
        table.add_column("Value", style="white")

        table.add_row("Video Renditions", str(len(manifest.videos)))
        table.add_row("Audio Renditions", str(len(manifest.audio)))
        table.add_row("Subtitle Tracks", str(len(manifest.subtitles)))
        table.add_row("Fonts", str(len(manifest.font_map)))
        table.add_row("Chapters", str(len(manifest.chapters)))

        default_subtitle = manifest.default_subtitle
        table.add_row("Default Subtitle", default_subtitle.name if default_subtitle else "None")

        if elapsed is not None:
            table.add_row("Elapsed", format_duration(elapsed))

        self.console.print(table)
        self.console.print()

    def _display_video_renditions(self, manifest: JobManifest, output_dir: Optional[Path]) -> None:
        table = Table(title="Video Renditions", show_header=True)
        table.add_column("Name", style="cyan", width=12)
        table.add_column("Resolution", style="yellow", width=12)
        table.add_column("Size", style="blue", width=15)
        table.add_column("File", style="white")

        for video in manifest.videos:
            resolution = video.resolution
            table.add_row(
                resolution.name,
                f"{resolution.w}x{resolution.h}",
                self._size_of(output_dir, video.file),
                video.file,
            )

        self.console.print(table)
        self.console.print()

    def _display_audio_renditions(self, manifest: JobManifest, output_dir: Optional[Path]) -> None:
        table = Table(title="Audio Renditions", show_header=True)
        table.add_column("Language", style="cyan", width=12)
        table.add_column("Default", style="green", width=10)
        table.add_column("Size", style="blue", width=15)
        table.add_column("File", style="white")

        for audio in manifest.audio:
            table.add_row(
                audio.lang,
                "✓" if audio.default else "",
                self._size_of(output_dir, audio.file),
                audio.file,
            )

        self.console.print(table)
        self.console.print()

    def _display_subtitles(self, manifest: JobManifest) -> None:
        table = Table(title="Subtitles", show_header=True)
        table.add_column("Name", style="cyan")
        table.add_column("Language", style="yellow", width=10)
        table.add_column("Default", style="green", width=10)
        table.add_column("File", style="white")

        for subtitle in manifest.subtitles:
            table.add_row(
                subtitle.name,
                subtitle.lang,
                "✓" if subtitle.default else "",
                subtitle.file,
            )

        self.console.print(table)
        self.console.print()

    def _display_output_location(self, manifest: JobManifest, output_dir: Path) -> None:
        tree = Tree(f"📁 [bold cyan]{output_dir}", guide_style="dim")
        tree.add(f"[green]{MANIFEST_NAME}[/green]")
        tree.add("[green]manifest.mpd[/green]")
        tree.add("[green]fallback.mp4[/green]")

        if manifest.font_map:
            font_branch = tree.add("[cyan]Fonts")
            for original, stored in manifest.font_map.items():
                font_branch.add(f"[yellow]{original}[/yellow] - {stored}")

        self.console.print(tree)

    @staticmethod
    def _size_of(output_dir: Optional[Path], name: str) -> str:
        if output_dir is None:
            return "N/A"
        return format_size(get_file_size(output_dir / name))

    def display_error(self, message: str, error: Optional[Exception] = None) -> None:
        """
        Display error message.

        Args:
            message: Error message
            error: Optional exception object
        """
        error_text = Text(f"✗ {message}", style="bold red")

        if error:
            error_text.append(Text(f"\n{error}", style="red"))

        panel = Panel(error_text, title="Error", border_style="red")
        self.console.print()
        self.console.print(panel)
        self.console.print()

    def display_success(self, message: str) -> None:
        success_text = Text(f"✓ {message}", style="bold green")
        panel = Panel(success_text, title="Success", border_style="green")
        self.console.print()
        self.console.print(panel)
        self.console.print()

    def display_info(self, message: str) -> None:
        info_text = Text.from_markup(f"[cyan]ℹ {message}[/cyan]")
        self.console.print(info_text)


def create_summary_table(manifest: JobManifest) -> Table:
    """
    Create a compact summary table for a job manifest.

    Args:
        manifest: Job manifest

    Returns:
        Rich Table object
    """
    table = Table(title=f"Job {manifest.job}", show_header=True)
    table.add_column("Component", style="cyan")
    table.add_column("Count", style="yellow")
    table.add_column("Details", style="green")

    table.add_row(
        "Video Renditions",
        str(len(manifest.videos)),
        ", ".join(v.resolution.name for v in manifest.videos),
    )
    table.add_row(
        "Audio Renditions",
        str(len(manifest.audio)),
        ", ".join(a.lang for a in manifest.audio),
    )
    table.add_row(
        "Subtitle Tracks",
        str(len(manifest.subtitles)),
        ", ".join(s.lang for s in manifest.subtitles),
    )
    table.add_row("Fonts", str(len(manifest.font_map)), "")
    table.add_row("Chapters", str(len(manifest.chapters)), "")

    return table
