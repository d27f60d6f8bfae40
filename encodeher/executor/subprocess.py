"""
Async subprocess wrapper for ffmpeg, ffprobe and packager execution.

This module provides asynchronous process management for external tools,
including stderr streaming into the job log and encode progress tracking.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from ..utils import JobLog, ToolError, extract_progress_time, get_logger

logger = get_logger(__name__)

# ffmpeg -stats rewrites its status line with \r, so both terminators split lines
_LINE_SPLIT = re.compile(r"[\r\n]")
_CHUNK_SIZE = 64 * 1024


@dataclass
class ToolResult:
    """Outcome of a finished tool invocation."""

    returncode: int
    stdout: str
    stderr: str
    stdout_size: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class AsyncToolProcess:
    """
    Async wrapper for external tool execution.

    Provides non-blocking process execution with:
    - Real-time stderr streaming into the job log
    - Progress parsing from `time=` markers
    - Optional stdout capture or byte counting
    - Cleanup of the child process on cancellation
    """

    def __init__(
        self,
        command: list[str],
        progress_callback: Optional[Callable[[float], None]] = None,
        job_log: Optional[JobLog] = None,
        capture_stdout: bool = True,
        check: bool = True,
    ):
        """
        Initialize async tool process.

        Args:
            command: Command as list of arguments
            progress_callback: Called with elapsed media seconds for every
                               stats line that carries a timestamp
            job_log: Job log receiving the raw stderr text
            capture_stdout: Keep stdout text; when False only its size is counted
            check: Raise ToolError on a non-zero exit status
        """
        self.command = command
        self.progress_callback = progress_callback
        self.job_log = job_log
        self.capture_stdout = capture_stdout
        self.check = check
        self._process: Optional[asyncio.subprocess.Process] = None
        self._stderr_lines: list[str] = []

    async def run(self) -> ToolResult:
        """
        Run the command and wait for it to exit.

        Returns:
            ToolResult with exit status and output

        Raises:
            ToolError: If the tool cannot be started, or exits non-zero while `check` is set
        """
        logger.debug(f"Running: {' '.join(self.command)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ToolError(f"Failed to start {self.command[0]}: {e}", command=self.command) from e

        try:
            (stdout, stdout_size), stderr = await asyncio.gather(
                self._read_stdout(), self._read_stderr()
            )
            returncode = await self._process.wait()
        except BaseException:
            await self.terminate()
            raise

        result = ToolResult(
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            stdout_size=stdout_size,
        )

        if self.check and not result.ok:
            raise ToolError(
                f"{self.command[0]} exited with code {returncode}: "
                f"{self._extract_error_message(stderr)}",
                command=self.command,
                returncode=returncode,
                stderr=stderr,
            )

        return result

    async def _read_stdout(self) -> tuple[str, int]:
        """
        Read stdout from process.

        Returns:
            Tuple of (text, byte count); text is empty when not capturing
        """
        if not self._process or not self._process.stdout:
            return "", 0

        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = await self._process.stdout.read(_CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if self.capture_stdout:
                chunks.append(chunk)

        return b"".join(chunks).decode(errors="replace"), size

    async def _read_stderr(self) -> str:
        """
        Stream stderr into the job log and parse progress from it.

        Returns:
            Complete stderr output as string
        """
        async for line in self._stream_stderr():
            self._stderr_lines.append(line)

            if self.progress_callback:
                elapsed = extract_progress_time(line)
                if elapsed is not None:
                    self.progress_callback(elapsed)

        return "\n".join(self._stderr_lines)

    async def _stream_stderr(self) -> AsyncIterator[str]:
        """
        Stream stderr line by line.

        Yields:
            Non-empty lines, split on either \\r or \\n
        """
        if not self._process or not self._process.stderr:
            return

        pending = ""
        while True:
            chunk = await self._process.stderr.read(_CHUNK_SIZE)
            if not chunk:
                break

            text = chunk.decode(errors="replace")
            if self.job_log is not None:
                self.job_log.append(text)

            *lines, pending = _LINE_SPLIT.split(pending + text)
            for line in lines:
                if line.strip():
                    yield line.strip()

        if pending.strip():
            yield pending.strip()

    def _extract_error_message(self, stderr: str) -> str:
        """Return the last three non-empty stderr lines."""
        lines = [line for line in stderr.split("\n") if line.strip()]
        return " | ".join(lines[-3:]) if lines else "Unknown error"

    async def terminate(self) -> None:
        """
        Terminate the process gracefully.

        Sends SIGTERM, waits briefly, then sends SIGKILL if needed.
        """
        if not self._process or self._process.returncode is not None:
            return

        try:
            logger.info(f"Terminating {self.command[0]}...")
            self._process.terminate()
            try:
                await asyncio.wait_for(self._process.wait(), timeout=5.0)
            except asyncio.TimeoutError:
                logger.warning("Forcing process termination...")
                self._process.kill()
                await self._process.wait()
        except ProcessLookupError:
            pass

    @property
    def is_running(self) -> bool:
        """Check if process is currently running."""
        return self._process is not None and self._process.returncode is None

    @property
    def returncode(self) -> Optional[int]:
        """Get process return code."""
        return self._process.returncode if self._process else None

    @property
    def stderr_output(self) -> list[str]:
        """Get captured stderr lines."""
        return self._stderr_lines.copy()


async def run_tool(
    command: list[str],
    job_log: Optional[JobLog] = None,
    progress_callback: Optional[Callable[[float], None]] = None,
    capture_stdout: bool = True,
    check: bool = True,
) -> ToolResult:
    """
    Convenience function to run an external tool asynchronously.

    Args:
        command: Command as list of arguments
        job_log: Job log receiving the raw stderr text
        progress_callback: Callback with elapsed media seconds
        capture_stdout: Keep stdout text; when False only its size is counted
        check: Raise ToolError on a non-zero exit status

    Returns:
        ToolResult of the finished process
    """
    process = AsyncToolProcess(
        command,
        progress_callback=progress_callback,
        job_log=job_log,
        capture_stdout=capture_stdout,
        check=check,
    )
    return await process.run()
