"""
Tests for async subprocess wrapper.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from encodeher.executor import AsyncToolProcess, run_tool
from encodeher.utils import JobLog, ToolError


def make_process(stdout: bytes = b"", stderr: bytes = b"", returncode=0):
    """Fake asyncio process whose pipes are real StreamReaders."""
    process = MagicMock()
    process.stdout = asyncio.StreamReader()
    process.stdout.feed_data(stdout)
    process.stdout.feed_eof()
    process.stderr = asyncio.StreamReader()
    process.stderr.feed_data(stderr)
    process.stderr.feed_eof()
    process.wait = AsyncMock(return_value=returncode)
    process.returncode = returncode
    return process


@pytest.fixture
def sample_command():
    """Sample ffmpeg command for testing."""
    return ["ffmpeg", "-i", "input.mkv", "-c:a", "libopus", "out.webm"]


@pytest.fixture
def sample_stderr():
    """ffmpeg -stats output; status updates are separated by carriage returns."""
    return (
        b"Input #0, matroska,webm, from 'input.mkv':\n"
        b"  Duration: 00:24:00.05, start: 0.000000, bitrate: 5000 kb/s\n"
        b"size=       0kB time=-577014:32:22.77 bitrate=N/A speed=N/A\r"
        b"size=     256kB time=00:00:05.00 bitrate= 419.4kbits/s speed=10x\r"
        b"size=     512kB time=00:00:10.50 bitrate= 399.5kbits/s speed=10x\r"
        b"size=    1024kB time=00:00:20.00 bitrate= 419.4kbits/s speed=10x\n"
    )


class TestAsyncToolProcess:
    """Test AsyncToolProcess class."""

    def test_initialization(self, sample_command):
        """Test process initialization."""
        process = AsyncToolProcess(sample_command)
        assert process.command == sample_command
        assert process.progress_callback is None
        assert process.check
        assert not process.is_running
        assert process.returncode is None

    @pytest.mark.asyncio
    async def test_run_success(self, sample_command, sample_stderr):
        """Test successful command execution."""
        mock_process = make_process(stdout=b"output", stderr=sample_stderr)

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            result = await AsyncToolProcess(sample_command).run()

        assert result.ok
        assert result.stdout == "output"
        assert result.stdout_size == 6
        assert "Duration: 00:24:00.05" in result.stderr

    @pytest.mark.asyncio
    async def test_progress_callback(self, sample_command, sample_stderr):
        """Every stats line with a timestamp reports elapsed seconds."""
        mock_process = make_process(stderr=sample_stderr)
        callback = MagicMock()

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            await AsyncToolProcess(sample_command, progress_callback=callback).run()

        reported = [c.args[0] for c in callback.call_args_list]
        assert reported == [0.0, 5.0, 10.5, 20.0]

    @pytest.mark.asyncio
    async def test_stderr_goes_to_job_log(self, sample_command, sample_stderr, tmp_path):
        mock_process = make_process(stderr=sample_stderr)
        job_log = JobLog(tmp_path)

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            await run_tool(sample_command, job_log=job_log)
        job_log.close()

        assert "time=00:00:10.50" in job_log.path.read_text()

    @pytest.mark.asyncio
    async def test_stdout_size_only(self, sample_command):
        """Without capture only the byte count is kept."""
        mock_process = make_process(stdout=b"x" * 200_000)

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            result = await run_tool(sample_command, capture_stdout=False)

        assert result.stdout == ""
        assert result.stdout_size == 200_000

    @pytest.mark.asyncio
    async def test_run_failure(self, sample_command):
        """Test command execution failure."""
        mock_process = make_process(
            stderr=b"line one\nline two\nError: Invalid data found\n", returncode=1
        )

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            with pytest.raises(ToolError, match="exited with code 1") as exc_info:
                await run_tool(sample_command)

        error = exc_info.value
        assert error.returncode == 1
        assert error.command == sample_command
        assert "Invalid data found" in error.stderr

    @pytest.mark.asyncio
    async def test_unchecked_failure(self, sample_command):
        mock_process = make_process(returncode=1)

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            result = await run_tool(sample_command, check=False)

        assert not result.ok
        assert result.returncode == 1

    @pytest.mark.asyncio
    async def test_missing_executable(self, sample_command):
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=FileNotFoundError("No such file or directory: 'ffmpeg'"),
        ):
            with pytest.raises(ToolError, match="Failed to start ffmpeg"):
                await run_tool(sample_command)

    @pytest.mark.asyncio
    async def test_cancellation_terminates_child(self, sample_command):
        mock_process = make_process()
        mock_process.returncode = None
        mock_process.wait = AsyncMock(side_effect=[asyncio.CancelledError(), -15])

        with patch("asyncio.create_subprocess_exec", return_value=mock_process):
            with pytest.raises(asyncio.CancelledError):
                await run_tool(sample_command)

        mock_process.terminate.assert_called_once()

    def test_extract_error_message(self, sample_command):
        process = AsyncToolProcess(sample_command)

        assert process._extract_error_message("a\nb\n\nc\nd") == "b | c | d"
        assert process._extract_error_message("") == "Unknown error"
