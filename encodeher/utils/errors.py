"""
Custom exceptions for encodeher.

This module defines the exception hierarchy used throughout the application.
Every kind except SubtitleLengthProbeFailure is fatal to the job; nothing in
the pipeline retries.
"""

from typing import Optional


class EncodeherError(Exception):
    """Base exception for all encodeher errors."""

    pass


class ConfigurationError(EncodeherError):
    """Configuration is invalid or missing."""

    pass


class ToolError(EncodeherError):
    """An external tool (ffmpeg, ffprobe, packager) exited unsuccessfully."""

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        """
        Initialize tool error with command details.

        Args:
            message: Error message
            command: Command that failed
            returncode: Process exit status
            stderr: Standard error output from the tool
        """
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ProbeFailure(EncodeherError):
    """ffprobe failed or produced output that could not be parsed."""

    pass


class NoVideoStream(EncodeherError):
    """Source has no video stream."""

    pass


class NoAudioStream(EncodeherError):
    """Source has no audio stream."""

    pass


class MissingAttachmentFilename(EncodeherError):
    """A font attachment carries no embedded filename tag."""

    def __init__(self, index: int):
        super().__init__(f"Attachment stream #{index} is lacking a filename tag")
        self.index = index


class ExtractionFailure(EncodeherError):
    """Expected extraction output is absent after the tool exited."""

    pass


class HashFailure(EncodeherError):
    """Content hash of an extracted attachment could not be computed."""

    pass


class EncodeFailure(EncodeherError):
    """An encoder invocation failed."""

    pass


class PackagingFailure(EncodeherError):
    """The adaptive-streaming packager failed."""

    pass


class SubtitleLengthProbeFailure(EncodeherError):
    """Decoded subtitle length could not be measured (recovered by the selector)."""

    pass
