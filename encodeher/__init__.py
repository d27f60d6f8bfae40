"""
encodeher

Packs one source video into adaptive AV1/Opus renditions, extracted
subtitles, deduplicated fonts, a single-file fallback and a portable job
manifest.
"""

__version__ = "0.1.0"

from encodeher.models import (
    JobManifest,
    ProbeResult,
    Resolution,
    Stream,
)
from encodeher.utils import (
    ConfigurationError,
    EncodeherError,
    get_logger,
    setup_logger,
)

__all__ = [
    "__version__",
    # Models
    "JobManifest",
    "ProbeResult",
    "Resolution",
    "Stream",
    # Utils
    "ConfigurationError",
    "EncodeherError",
    "get_logger",
    "setup_logger",
]
