"""
Transcoding modules: asset extraction and rendition encoding.
"""

from .audio import AudioEncoder
from .extractor import AssetExtractor
from .fonts import FONT_DIR_NAME, FontExtractor, md5_file
from .pipeline import FallbackPlan, PipelineResult, TranscodePipeline
from .subtitle import SubtitleExtractor
from .video import FALLBACK_NAME, VideoEncoder

__all__ = [
    # Extraction
    "AssetExtractor",
    "FontExtractor",
    "SubtitleExtractor",
    "FONT_DIR_NAME",
    "md5_file",
    # Encoding
    "AudioEncoder",
    "VideoEncoder",
    "FALLBACK_NAME",
    # Pipeline
    "FallbackPlan",
    "PipelineResult",
    "TranscodePipeline",
]
