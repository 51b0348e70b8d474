"""
Contract tests for SoundboardConfig.

Environment variables are isolated with the clean_env fixture.
"""

import pytest

from soundboard.config import SoundboardConfig, default_media_root, is_url


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self, clean_env):
        config = SoundboardConfig.load_config()

        assert config.catalog_location == "sounds.json"
        assert config.output_mode == "sounddevice"
        assert config.sample_rate == 48000
        assert config.channels == 2
        assert config.sequence_pause_ms == 100
        assert config.sequence_pause_sec == pytest.approx(0.1)
        assert config.preload == "first_play"
        assert config.fetch_timeout_sec is None
        assert config.log_level == "INFO"
        assert config.log_file is None


class TestEnvironment:
    """Tests for loading from environment variables and .env files."""

    def test_environment_overrides(self, clean_env):
        clean_env.setenv("SOUNDBOARD_CATALOG", "https://example.org/board/sounds.json")
        clean_env.setenv("SOUNDBOARD_OUTPUT_MODE", "NULL")
        clean_env.setenv("SOUNDBOARD_SEQUENCE_PAUSE_MS", "250")
        clean_env.setenv("SOUNDBOARD_PRELOAD", "startup")
        clean_env.setenv("SOUNDBOARD_FETCH_TIMEOUT_SEC", "2.5")
        clean_env.setenv("SOUNDBOARD_LOG_LEVEL", "debug")

        config = SoundboardConfig.load_config()

        assert config.catalog_location == "https://example.org/board/sounds.json"
        assert config.output_mode == "null"
        assert config.sequence_pause_sec == pytest.approx(0.25)
        assert config.preload == "startup"
        assert config.fetch_timeout_sec == 2.5
        assert config.log_level == "DEBUG"

    def test_env_file_loaded(self, clean_env, tmp_path):
        env_file = tmp_path / "board.env"
        env_file.write_text("SOUNDBOARD_SEQUENCE_PAUSE_MS=500\nSOUNDBOARD_OUTPUT_MODE=null\n")
        clean_env.setenv("SOUNDBOARD_ENV_FILE", str(env_file))

        config = SoundboardConfig.load_config()

        assert config.sequence_pause_ms == 500
        assert config.output_mode == "null"

    def test_environment_wins_over_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / "board.env"
        env_file.write_text("SOUNDBOARD_SEQUENCE_PAUSE_MS=500\n")
        clean_env.setenv("SOUNDBOARD_ENV_FILE", str(env_file))
        clean_env.setenv("SOUNDBOARD_SEQUENCE_PAUSE_MS", "20")

        assert SoundboardConfig.load_config().sequence_pause_ms == 20

    def test_missing_env_file_is_fine(self, clean_env, tmp_path):
        clean_env.setenv("SOUNDBOARD_ENV_FILE", str(tmp_path / "absent.env"))

        assert SoundboardConfig.load_config().output_mode == "sounddevice"


class TestValidation:
    """Tests for rejecting invalid configuration."""

    @pytest.mark.parametrize("name,value", [
        ("SOUNDBOARD_OUTPUT_MODE", "speakers"),
        ("SOUNDBOARD_PRELOAD", "sometimes"),
        ("SOUNDBOARD_SAMPLE_RATE", "fast"),
        ("SOUNDBOARD_SAMPLE_RATE", "0"),
        ("SOUNDBOARD_CHANNELS", "6"),
        ("SOUNDBOARD_SEQUENCE_PAUSE_MS", "-1"),
        ("SOUNDBOARD_FETCH_TIMEOUT_SEC", "soon"),
        ("SOUNDBOARD_FETCH_TIMEOUT_SEC", "0"),
        ("SOUNDBOARD_LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_value_raises(self, clean_env, name, value):
        clean_env.setenv(name, value)

        with pytest.raises(ValueError):
            SoundboardConfig.load_config()

    def test_empty_catalog_location_rejected(self):
        with pytest.raises(ValueError):
            SoundboardConfig(catalog_location="").validate()


class TestMediaRoot:
    """Tests for resolving where segment files live."""

    def test_is_url(self):
        assert is_url("https://example.org/a.mp3")
        assert is_url("http://example.org/a.mp3")
        assert not is_url("/srv/a.mp3")

    def test_url_catalog_root_is_its_directory(self):
        assert default_media_root("https://example.org/board/sounds.json") == "https://example.org/board/"

    def test_local_catalog_root_is_its_directory(self, tmp_path):
        assert default_media_root(str(tmp_path / "sounds.json")) == str(tmp_path.resolve())

    def test_explicit_media_root_wins(self):
        config = SoundboardConfig(catalog_location="/srv/board/sounds.json", media_root="/mnt/audio")

        assert config.resolved_media_root == "/mnt/audio"
