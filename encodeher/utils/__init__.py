"""Shared utilities: errors, logging and helpers."""

from encodeher.utils.errors import (
    ConfigurationError,
    EncodeFailure,
    EncodeherError,
    ExtractionFailure,
    HashFailure,
    MissingAttachmentFilename,
    NoAudioStream,
    NoVideoStream,
    PackagingFailure,
    ProbeFailure,
    SubtitleLengthProbeFailure,
    ToolError,
)
from encodeher.utils.helpers import (
    extract_progress_time,
    ff_escape,
    format_duration,
    format_size,
    get_file_size,
    slugify,
)
from encodeher.utils.logger import JOB_LOG_NAME, JobLog, get_logger, setup_logger

__all__ = [
    # Errors
    "ConfigurationError",
    "EncodeFailure",
    "EncodeherError",
    "ExtractionFailure",
    "HashFailure",
    "MissingAttachmentFilename",
    "NoAudioStream",
    "NoVideoStream",
    "PackagingFailure",
    "ProbeFailure",
    "SubtitleLengthProbeFailure",
    "ToolError",
    # Helpers
    "extract_progress_time",
    "ff_escape",
    "format_duration",
    "format_size",
    "get_file_size",
    "slugify",
    # Logging
    "JOB_LOG_NAME",
    "JobLog",
    "get_logger",
    "setup_logger",
]
