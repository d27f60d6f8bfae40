"""
Tests for subtitle and font extraction.
"""

import hashlib
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from encodeher.executor import ToolResult
from encodeher.models import PipelineStage, ProgressChannel, Stream
from encodeher.planner import describe_subtitle
from encodeher.transcoder import AssetExtractor, FontExtractor, SubtitleExtractor, md5_file
from encodeher.utils import (
    ExtractionFailure,
    HashFailure,
    JobLog,
    MissingAttachmentFilename,
    ToolError,
)

FONT_BYTES = {
    3: b"roboto font data",
    4: b"noto font data",
    5: b"roboto font data",
}


def fake_ffmpeg(command, **kwargs):
    """Write what ffmpeg would write for extraction commands."""
    dump = next((arg for arg in command if arg.startswith("-dump_attachment:")), None)
    if dump is not None:
        index = int(dump.split(":")[1])
        target = Path(command[command.index(dump) + 1])
        target.write_bytes(FONT_BYTES[index])
        # ffmpeg complains about the missing output file
        return ToolResult(returncode=1, stdout="", stderr="At least one output file must be specified")

    stream = command[command.index("-map") + 1]
    Path(command[-1]).write_text(f"[Script Info]\nTitle: stream {stream}\n")
    return ToolResult(returncode=0, stdout="", stderr="")


def subtitle(index, language=None, title=None):
    tags = {}
    if language:
        tags["language"] = language
    if title is not None:
        tags["title"] = title
    return Stream(index=index, codec_type="subtitle", codec_name="ass", tags=tags)


def font(index, filename):
    tags = {"filename": filename} if filename else {}
    return Stream(index=index, codec_type="attachment", codec_name="ttf", tags=tags)


@pytest.fixture
def job_dirs(tmp_path):
    outdir = tmp_path / "out"
    fontdir = tmp_path / "fonts"
    outdir.mkdir()
    fontdir.mkdir()
    return tmp_path, outdir, fontdir


@pytest.fixture
def job_log(tmp_path):
    log = JobLog(tmp_path)
    yield log
    log.close()


class TestSubtitleExtractor:
    """Test SubtitleExtractor."""

    def test_build_command(self, job_dirs, job_log):
        _, outdir, _ = job_dirs
        extractor = SubtitleExtractor(Path("/media/ep.mkv"), outdir, job_log)

        command = extractor.build_command(2, outdir / "Full.ass")

        assert command == [
            "ffmpeg",
            "-loglevel",
            "24",
            "-y",
            "-i",
            "/media/ep.mkv",
            "-map",
            "0:2",
            "-c",
            "copy",
            "-f",
            "ass",
            str(outdir / "Full.ass"),
        ]

    def test_output_name(self, job_dirs, job_log):
        _, outdir, _ = job_dirs
        extractor = SubtitleExtractor(Path("/media/ep.mkv"), outdir, job_log)

        assert extractor.output_name(describe_subtitle(subtitle(2, "eng", "Full"))) == "Full.ass"

    @pytest.mark.asyncio
    async def test_tool_error(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs

        with patch(
            "encodeher.transcoder.subtitle.run_tool",
            new=AsyncMock(side_effect=ToolError("ffmpeg exited with code 1")),
        ):
            with pytest.raises(ExtractionFailure, match="#2"):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_subtitles([subtitle(2, "eng", "Full")], None)

    @pytest.mark.asyncio
    async def test_missing_output(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        result = ToolResult(returncode=0, stdout="", stderr="")

        with patch("encodeher.transcoder.subtitle.run_tool", new=AsyncMock(return_value=result)):
            with pytest.raises(ExtractionFailure, match="produced no"):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_subtitles([subtitle(2, "eng")], None)


class TestAssetExtractorSubtitles:
    """Test AssetExtractor.extract_subtitles."""

    @pytest.mark.asyncio
    async def test_extract_subtitles(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        streams = [
            subtitle(2, "eng", "Signs & Songs"),
            subtitle(3, "eng", "Full Subtitles"),
            subtitle(4),
        ]
        channel = ProgressChannel()
        events = []
        channel.subscribe(events.append)
        extractor = AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log, channel)

        with patch("encodeher.transcoder.subtitle.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)):
            assets = await extractor.extract_subtitles(streams, selected=streams[1])

        assert [a.to_dict() for a in assets] == [
            {"name": "Signs & Songs", "lang": "eng", "default": False, "file": "Signs-and-Songs.ass"},
            {"name": "Full Subtitles", "lang": "eng", "default": True, "file": "Full-Subtitles.ass"},
            {"name": "Subtitles #4 (???)", "lang": "???", "default": False, "file": "Subtitles-4.ass"},
        ]
        for asset in assets:
            assert (outdir / asset.file).exists()

        assert [(e.stage, e.elapsed, e.total) for e in events] == [
            (PipelineStage.SUBTITLES, 1, 3),
            (PipelineStage.SUBTITLES, 2, 3),
            (PipelineStage.SUBTITLES, 3, 3),
        ]

    @pytest.mark.asyncio
    async def test_duplicate_titles_get_distinct_files(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        streams = [subtitle(2, "eng", "English"), subtitle(3, "eng", "English")]
        extractor = AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log)

        with patch("encodeher.transcoder.subtitle.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)):
            assets = await extractor.extract_subtitles(streams, selected=streams[0])

        assert [(a.file, a.default) for a in assets] == [
            ("English.ass", True),
            ("English-3.ass", False),
        ]
        assert "stream 0:2" in (outdir / "English.ass").read_text()
        assert "stream 0:3" in (outdir / "English-3.ass").read_text()

    @pytest.mark.asyncio
    async def test_no_selection(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        extractor = AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log)

        with patch("encodeher.transcoder.subtitle.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)):
            assets = await extractor.extract_subtitles([subtitle(2, "eng")], None)

        assert not any(a.default for a in assets)


class TestFontExtraction:
    """Test FontExtractor and AssetExtractor.extract_fonts."""

    def test_build_command(self, job_dirs, job_log):
        _, _, fontdir = job_dirs
        extractor = FontExtractor(Path("/media/ep.mkv"), fontdir, job_log)

        command = extractor.build_command(3, fontdir / "Roboto.ttf")

        assert command == [
            "ffmpeg",
            "-loglevel",
            "24",
            "-y",
            "-dump_attachment:3",
            str(fontdir / "Roboto.ttf"),
            "-i",
            "/media/ep.mkv",
        ]

    @pytest.mark.asyncio
    async def test_extract_fonts(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        channel = ProgressChannel()
        sink = MagicMock()
        channel.subscribe(sink)
        extractor = AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log, channel)

        with patch("encodeher.transcoder.fonts.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)):
            font_map = await extractor.extract_fonts([font(3, "Roboto.ttf"), font(4, "Noto.ttf")])

        roboto_md5 = hashlib.md5(FONT_BYTES[3]).hexdigest()
        noto_md5 = hashlib.md5(FONT_BYTES[4]).hexdigest()
        assert font_map == {
            "Roboto.ttf": f"fonts/{roboto_md5}-Roboto.ttf",
            "Noto.ttf": f"fonts/{noto_md5}-Noto.ttf",
        }
        assert sorted(p.name for p in fontdir.iterdir()) == sorted(
            [f"{roboto_md5}-Roboto.ttf", f"{noto_md5}-Noto.ttf"]
        )
        assert sink.call_count == 2

    @pytest.mark.asyncio
    async def test_identical_fonts_share_a_file(self, job_dirs, job_log):
        """Re-dumping identical bytes under the same name is idempotent."""
        _, outdir, fontdir = job_dirs
        extractor = AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log)

        with patch("encodeher.transcoder.fonts.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)):
            font_map = await extractor.extract_fonts([font(3, "Roboto.ttf"), font(5, "Roboto.ttf")])

        assert len(font_map) == 1
        assert len(list(fontdir.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_missing_filename(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        mock_run = AsyncMock(side_effect=fake_ffmpeg)

        with patch("encodeher.transcoder.fonts.run_tool", new=mock_run):
            with pytest.raises(MissingAttachmentFilename, match="#6"):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_fonts([font(6, None)])

        mock_run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_dumps_to_generated_name(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        mock_run = AsyncMock(side_effect=fake_ffmpeg)

        with patch("encodeher.transcoder.fonts.run_tool", new=mock_run):
            await AssetExtractor(Path("/media/ep.mkv"), outdir, fontdir, job_log).extract_fonts(
                [font(3, "Roboto.ttf")]
            )

        command = mock_run.await_args.args[0]
        target = Path(command[command.index("-dump_attachment:3") + 1])
        assert target.parent == fontdir
        assert target.name != "Roboto.ttf"
        assert [p.name for p in fontdir.iterdir()] == [
            f"{hashlib.md5(FONT_BYTES[3]).hexdigest()}-Roboto.ttf"
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("filename", ["../escape.ttf", "sub/Roboto.ttf", ".."])
    async def test_unsafe_filename(self, job_dirs, job_log, filename):
        base, outdir, fontdir = job_dirs
        mock_run = AsyncMock(side_effect=fake_ffmpeg)

        with patch("encodeher.transcoder.fonts.run_tool", new=mock_run):
            with pytest.raises(ExtractionFailure, match="unsafe filename"):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_fonts([font(3, filename)])

        mock_run.assert_not_awaited()
        assert not (base / "escape.ttf").exists()
        assert list(fontdir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_store_failure(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs

        with patch(
            "encodeher.transcoder.fonts.run_tool", new=AsyncMock(side_effect=fake_ffmpeg)
        ), patch("encodeher.transcoder.fonts.os.replace", side_effect=OSError("read-only")):
            with pytest.raises(ExtractionFailure, match="Roboto.ttf"):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_fonts([font(3, "Roboto.ttf")])

        assert list(fontdir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_nothing_dumped(self, job_dirs, job_log):
        _, outdir, fontdir = job_dirs
        result = ToolResult(returncode=1, stdout="", stderr="")

        with patch("encodeher.transcoder.fonts.run_tool", new=AsyncMock(return_value=result)):
            with pytest.raises(ExtractionFailure):
                await AssetExtractor(
                    Path("/media/ep.mkv"), outdir, fontdir, job_log
                ).extract_fonts([font(3, "Roboto.ttf")])

    def test_md5_file(self, tmp_path):
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")
        assert md5_file(path) == "900150983cd24fb0d6963f7d28e17f72"

    def test_md5_unreadable(self, tmp_path):
        with pytest.raises(HashFailure):
            md5_file(tmp_path / "missing.bin")
