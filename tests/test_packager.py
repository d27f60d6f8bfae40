"""
Tests for packager invocation and the job manifest.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from encodeher.executor import ToolResult
from encodeher.models import (
    AudioRendition,
    Chapter,
    Resolution,
    SubtitleAsset,
    VideoRendition,
)
from encodeher.packager import (
    MPD_NAME,
    assemble_manifest,
    build_packager_command,
    package_renditions,
    write_manifest,
)
from encodeher.utils import JobLog, PackagingFailure, ToolError


@pytest.fixture
def renditions(tmp_path):
    videos = [
        VideoRendition(tmp_path / "vnative.webm", Resolution("native", 1920, 1080)),
        VideoRendition(tmp_path / "v720p.webm", Resolution("720p", 1280, 720)),
    ]
    audio = [
        AudioRendition(tmp_path / "ajpn.webm", "jpn", default=True),
        AudioRendition(tmp_path / "aeng.webm", "eng"),
    ]
    return videos, audio


@pytest.fixture
def outdir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path


class TestPackagerCommand:
    """Test build_packager_command."""

    def test_descriptors(self, renditions, outdir, tmp_path):
        videos, audio = renditions

        command = build_packager_command(videos, audio, outdir)

        assert command == [
            "packager",
            f"in={tmp_path / 'vnative.webm'},stream=video,output={outdir / 'vnative.webm'}",
            f"in={tmp_path / 'v720p.webm'},stream=video,output={outdir / 'v720p.webm'}",
            f"in={tmp_path / 'ajpn.webm'},stream=audio,lang=jpn,roles=main,output={outdir / 'ajpn.webm'}",
            f"in={tmp_path / 'aeng.webm'},stream=audio,lang=eng,output={outdir / 'aeng.webm'}",
            "--mpd_output",
            str(outdir / "manifest.mpd"),
        ]

    def test_custom_executable(self, renditions, outdir):
        videos, audio = renditions
        command = build_packager_command(videos, audio, outdir, packager_path="/opt/shaka/packager")
        assert command[0] == "/opt/shaka/packager"


class TestPackageRenditions:
    """Test package_renditions."""

    @pytest.mark.asyncio
    async def test_success(self, renditions, outdir, tmp_path):
        videos, audio = renditions

        async def fake_packager(command, **kwargs):
            Path(command[-1]).write_text("<MPD/>")
            return ToolResult(returncode=0, stdout="", stderr="")

        job_log = JobLog(tmp_path)
        with patch(
            "encodeher.packager.invoker.run_tool", new=AsyncMock(side_effect=fake_packager)
        ):
            mpd = await package_renditions(videos, audio, outdir, job_log=job_log)
        job_log.close()

        assert mpd == outdir / MPD_NAME
        assert "!BEGIN Packager!" in job_log.path.read_text()

    @pytest.mark.asyncio
    async def test_tool_error(self, renditions, outdir):
        videos, audio = renditions

        with patch(
            "encodeher.packager.invoker.run_tool",
            new=AsyncMock(side_effect=ToolError("packager exited with code 1")),
        ):
            with pytest.raises(PackagingFailure, match="Packager failed"):
                await package_renditions(videos, audio, outdir)

    @pytest.mark.asyncio
    async def test_missing_manifest(self, renditions, outdir):
        videos, audio = renditions
        result = ToolResult(returncode=0, stdout="", stderr="")

        with patch("encodeher.packager.invoker.run_tool", new=AsyncMock(return_value=result)):
            with pytest.raises(PackagingFailure, match="missing"):
                await package_renditions(videos, audio, outdir)


class TestManifest:
    """Test manifest assembly and writing."""

    def test_assemble_and_write(self, renditions, outdir):
        videos, audio = renditions
        manifest = assemble_manifest(
            job="job-42",
            chapters=[Chapter(0.0, 90.0, "Intro")],
            subtitles=[
                SubtitleAsset("Signs", "Signs.ass", "eng"),
                SubtitleAsset("Full", "Full.ass", "eng", default=True),
            ],
            font_map={"Roboto.ttf": "fonts/abc-Roboto.ttf"},
            audio=audio,
            videos=videos,
        )

        path = write_manifest(manifest, outdir)

        assert path == outdir / "weebify.json"
        data = json.loads(path.read_text())
        assert data == {
            "version": 1,
            "job": "job-42",
            "chapters": [{"start": 0.0, "end": 90.0, "title": "Intro"}],
            "subtitles": [
                {"name": "Signs", "lang": "eng", "default": False, "file": "Signs.ass"},
                {"name": "Full", "lang": "eng", "default": True, "file": "Full.ass"},
            ],
            "fontMap": {"Roboto.ttf": "fonts/abc-Roboto.ttf"},
            "audio": [
                {"file": "ajpn.webm", "lang": "jpn", "default": True},
                {"file": "aeng.webm", "lang": "eng", "default": False},
            ],
            "videos": [
                {"file": "vnative.webm", "resolution": {"name": "native", "w": 1920, "h": 1080}},
                {"file": "v720p.webm", "resolution": {"name": "720p", "w": 1280, "h": 720}},
            ],
        }
        assert manifest.default_subtitle.file == "Full.ass"

    def test_write_leaves_no_temp_files(self, outdir):
        manifest = assemble_manifest("job", [], [], {}, [], [])

        write_manifest(manifest, outdir)
        write_manifest(manifest, outdir)

        assert [p.name for p in outdir.iterdir()] == ["weebify.json"]

    def test_failed_write_keeps_previous_manifest(self, outdir):
        write_manifest(assemble_manifest("first", [], [], {}, [], []), outdir)

        with patch("encodeher.packager.manifest.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_manifest(assemble_manifest("second", [], [], {}, [], []), outdir)

        assert json.loads((outdir / "weebify.json").read_text())["job"] == "first"
        assert [p.name for p in outdir.iterdir()] == ["weebify.json"]
