"""Media inspection."""

from encodeher.inspector.analyzer import MediaInspector, parse_probe_output

__all__ = [
    "MediaInspector",
    "parse_probe_output",
]
