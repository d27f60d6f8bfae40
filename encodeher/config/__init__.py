"""Configuration management for encodeher."""

from encodeher.config.manager import (
    ConfigManager,
    get_config_manager,
)
from encodeher.config.models import (
    AudioConfig,
    EncodeherConfig,
    FallbackConfig,
    SelectionConfig,
    ToolsConfig,
    VideoConfig,
)

__all__ = [
    # Manager
    "ConfigManager",
    "get_config_manager",
    # Models
    "AudioConfig",
    "EncodeherConfig",
    "FallbackConfig",
    "SelectionConfig",
    "ToolsConfig",
    "VideoConfig",
]
