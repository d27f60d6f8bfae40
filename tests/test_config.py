"""
Tests for configuration system.
"""

import pytest
from pydantic import ValidationError

from encodeher.config import (
    AudioConfig,
    ConfigManager,
    EncodeherConfig,
    FallbackConfig,
    SelectionConfig,
)
from encodeher.utils import ConfigurationError


@pytest.fixture
def no_default_locations(monkeypatch, tmp_path):
    """Point the default config search at an empty directory."""
    monkeypatch.setattr(
        ConfigManager, "DEFAULT_CONFIG_LOCATIONS", [tmp_path / "missing.yaml"]
    )


class TestEncodeherConfig:
    """Test EncodeherConfig model."""

    def test_create_default(self):
        """Test default encoder settings."""
        config = EncodeherConfig.create_default()

        assert config.workdir is None
        assert config.tools.ffmpeg == "ffmpeg"
        assert config.tools.loglevel == "24"
        assert config.selection.audio_language == "jpn"
        assert config.selection.subtitle_language == "eng"
        assert config.fallback.video_codec == "libx264"
        assert config.fallback.crf == 23
        assert config.fallback.tune == "animation"
        assert config.video.codec == "libsvtav1"
        assert config.video.codec_params == "tune=0:film-grain=2"
        assert config.audio.bitrate == "96k"
        assert config.audio.sample_rate == 48000

    def test_language_normalized(self):
        assert SelectionConfig(audio_language="JPN").audio_language == "jpn"

    @pytest.mark.parametrize("lang", ["", "en-US", "e1"])
    def test_invalid_language(self, lang):
        with pytest.raises(ValidationError):
            SelectionConfig(subtitle_language=lang)

    def test_invalid_preset(self):
        with pytest.raises(ValidationError):
            FallbackConfig(preset="turbo")

    def test_invalid_crf(self):
        with pytest.raises(ValidationError):
            FallbackConfig(crf=60)

    def test_invalid_audio(self):
        with pytest.raises(ValidationError):
            AudioConfig(bitrate="loud")
        with pytest.raises(ValidationError):
            AudioConfig(sample_rate=22050)


class TestConfigManager:
    """Test ConfigManager."""

    def test_load_default(self, no_default_locations):
        """Without any file the defaults are used."""
        manager = ConfigManager()
        assert manager.config == EncodeherConfig.create_default()

    def test_save_and_load(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config = EncodeherConfig.create_default()
        config.selection.audio_language = "eng"
        config.workdir = tmp_path / "jobs"

        ConfigManager().save(config_path, config)
        loaded = ConfigManager(config_path).config

        assert loaded.selection.audio_language == "eng"
        assert loaded.workdir == tmp_path / "jobs"

    def test_partial_file(self, tmp_path):
        """Missing sections fall back to defaults."""
        config_path = tmp_path / "config.yaml"
        config_path.write_text("video:\n  crf: 28\n")

        config = ConfigManager(config_path).config

        assert config.video.crf == 28
        assert config.video.preset == 7
        assert config.audio.codec == "libopus"

    def test_default_location_used(self, monkeypatch, tmp_path):
        config_path = tmp_path / ".encodeher.yaml"
        config_path.write_text("selection:\n  subtitle_language: ger\n")
        monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_LOCATIONS", [config_path])

        assert ConfigManager().config.selection.subtitle_language == "ger"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager().load(tmp_path / "nope.yaml")

    @pytest.mark.parametrize(
        "content,match",
        [
            ("", "empty"),
            ("- a\n- b\n", "mapping"),
            ("video: [unclosed\n", "Invalid YAML"),
            ("fallback:\n  crf: 99\n", "Invalid configuration"),
        ],
    )
    def test_invalid_files(self, tmp_path, content, match):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(content)

        with pytest.raises(ConfigurationError, match=match):
            ConfigManager(config_path).load()

    def test_init_default_config(self, tmp_path):
        config_path = tmp_path / "config.yaml"

        written = ConfigManager().init_default_config(config_path)

        assert written == config_path
        assert ConfigManager(config_path).config == EncodeherConfig.create_default()

    def test_init_existing_config_without_force(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("video:\n  crf: 28\n")

        with pytest.raises(ConfigurationError, match="already exists"):
            ConfigManager().init_default_config(config_path)

        ConfigManager().init_default_config(config_path, force=True)
        assert ConfigManager(config_path).config.video.crf == 33

    def test_reload(self, tmp_path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("video:\n  crf: 28\n")
        manager = ConfigManager(config_path)
        assert manager.config.video.crf == 28

        config_path.write_text("video:\n  crf: 30\n")
        assert manager.reload().video.crf == 30
