"""
Helper functions for encodeher.

This module contains utility functions used throughout the application.
"""

import re
import unicodedata
from pathlib import Path

# time=H:MM:SS.CC as printed by ffmpeg -stats; hours may be negative before the first packet
_TIME_PATTERN = re.compile(r"time=(-?\d+):(\d+):(\d+)\.(\d+)(?=\s|$)")


def format_size(bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 GB")
    """
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if bytes < 1024.0:
            return f"{bytes:.1f} {unit}"
        bytes /= 1024.0  # type: ignore
    return f"{bytes:.1f} PB"


def format_duration(seconds: float) -> str:
    """
    Format duration as HH:MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string (e.g., "01:30:45")
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def extract_progress_time(line: str) -> float | None:
    """
    Extract the elapsed encode time from an ffmpeg stats line.

    The two-digit fraction is read as hundredths of a second, and negative
    timestamps (seen before the first decoded packet) are clamped to zero.

    Args:
        line: One line of ffmpeg diagnostic output

    Returns:
        Elapsed seconds, or None if the line carries no timestamp
    """
    match = _TIME_PATTERN.search(line)
    if not match:
        return None

    hours, minutes, seconds, hundredths = (int(x) for x in match.groups())
    total = hours * 3600 + minutes * 60 + seconds + hundredths * 0.01
    return max(0.0, total)


def slugify(text: str, separator: str = "-") -> str:
    """
    Turn a display name into a filesystem-safe file stem.

    Accents are folded to ASCII, "&" becomes "and", whitespace runs become the
    separator and anything outside [A-Za-z0-9._~-] is dropped. Case is kept.

    Args:
        text: Display name (e.g. a subtitle track title)
        separator: Replacement for whitespace

    Returns:
        Slug, or "untitled" if nothing printable survives
    """
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii")
    ascii_text = ascii_text.replace("&", " and ")

    words = [re.sub(r"[^A-Za-z0-9._~-]", "", word) for word in ascii_text.split()]
    slug = separator.join(word for word in words if word)
    return slug or "untitled"


def ff_escape(text: str) -> str:
    """
    Quote a value for use inside an ffmpeg filtergraph argument.

    Args:
        text: Raw value

    Returns:
        Single-quoted value with embedded quotes escaped
    """
    return "'" + text.replace("'", "'\\''") + "'"


def get_file_size(path: Path) -> int:
    """
    Get file size in bytes.

    Args:
        path: File path

    Returns:
        File size in bytes, 0 if file doesn't exist
    """
    if path.exists() and path.is_file():
        return path.stat().st_size
    return 0
