"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

import chorus.config as config_module
from chorus.config import (
    CompactionStrategy,
    ConversationConfig,
    LoggingConfig,
    Settings,
    _deep_merge,
    _drop_none,
    _expand_env_vars,
    get_settings,
    load_settings,
    reset_settings,
)


class TestExpandEnvVars:
    """Tests for environment variable expansion."""

    def test_expand_simple_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test expanding a simple environment variable."""
        monkeypatch.setenv("CHORUS_TEST_VAR", "test_value")
        assert _expand_env_vars("${CHORUS_TEST_VAR}") == "test_value"

    def test_expand_inside_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test expanding a variable embedded in text."""
        monkeypatch.setenv("CHORUS_TEST_HOME", "/srv")
        assert _expand_env_vars("${CHORUS_TEST_HOME}/chorus.log") == "/srv/chorus.log"

    def test_expand_missing_var(self) -> None:
        """Test expanding a missing environment variable returns None."""
        assert _expand_env_vars("${CHORUS_NONEXISTENT_VAR}") is None

    def test_expand_nested(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test expanding variables in nested dicts and lists."""
        monkeypatch.setenv("CHORUS_TEST_NAME", "alice")
        data = {"conversation": {"allowed_speakers": ["${CHORUS_TEST_NAME}", "bob"]}}

        result = _expand_env_vars(data)

        assert result["conversation"]["allowed_speakers"] == ["alice", "bob"]

    def test_non_strings_untouched(self) -> None:
        """Test numbers and booleans pass through."""
        assert _expand_env_vars({"a": 3, "b": True}) == {"a": 3, "b": True}


class TestDeepMerge:
    """Tests for deep dictionary merging."""

    def test_simple_merge(self) -> None:
        """Test merging simple dictionaries."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self) -> None:
        """Test merging nested dictionaries."""
        base = {"compaction": {"max_messages": 50, "strategy": "bookend"}}
        override = {"compaction": {"max_messages": 20}}

        result = _deep_merge(base, override)

        assert result == {"compaction": {"max_messages": 20, "strategy": "bookend"}}

    def test_override_non_dict(self) -> None:
        """Test that non-dict values are overridden completely."""
        assert _deep_merge({"key": {"nested": "value"}}, {"key": "simple"}) == {"key": "simple"}

    def test_inputs_not_modified(self) -> None:
        """Test the base dictionary is left untouched."""
        base = {"a": {"b": 1}}
        _deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestDropNone:
    """Tests for removing unset values."""

    def test_drops_nested_none(self) -> None:
        """Test None values disappear at every level."""
        assert _drop_none({"a": None, "b": {"c": None, "d": 1}}) == {"b": {"d": 1}}

    def test_drops_none_list_items(self) -> None:
        """Test None entries are removed from lists."""
        assert _drop_none({"names": ["a", None, "b"]}) == {"names": ["a", "b"]}


class TestConversationConfig:
    """Tests for ConversationConfig validation."""

    def test_defaults(self) -> None:
        """Test default values are set correctly."""
        config = ConversationConfig()
        assert config.max_rounds == 10
        assert config.admin_name == "Admin"
        assert config.termination_marker == "terminate"
        assert config.speaker_selection == "round_robin"
        assert config.allowed_speakers == []

    def test_negative_rounds_fail(self) -> None:
        """Test max_rounds cannot be negative."""
        with pytest.raises(ValidationError):
            ConversationConfig(max_rounds=-1)

    def test_empty_marker_fails(self) -> None:
        """Test the termination marker cannot be blank."""
        with pytest.raises(ValidationError):
            ConversationConfig(termination_marker="  ")

    def test_admin_name_stripped(self) -> None:
        """Test the admin name is trimmed and required."""
        assert ConversationConfig(admin_name="  Host ").admin_name == "Host"
        with pytest.raises(ValidationError):
            ConversationConfig(admin_name="")

    def test_unknown_selection_fails(self) -> None:
        """Test only known selector names are accepted."""
        with pytest.raises(ValidationError):
            ConversationConfig(speaker_selection="auto")


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_level_normalized(self) -> None:
        """Test lower-case levels are accepted."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_invalid_level(self) -> None:
        """Test unknown levels fail."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="chatty")

    def test_resolved_log_file(self) -> None:
        """Test ~ is expanded in the log path."""
        config = LoggingConfig(log_file="~/chorus.log")
        assert config.resolved_log_file == Path.home() / "chorus.log"
        assert LoggingConfig().resolved_log_file is None


class TestLoadSettings:
    """Tests for settings loading."""

    def test_load_from_file(self, temp_config_file: Path, temp_dir: Path, clean_env: None) -> None:
        """Test values from a YAML file are applied."""
        settings = load_settings(config_path=temp_config_file, force_reload=True)

        assert settings.conversation.max_rounds == 4
        assert settings.conversation.admin_name == "Moderator"
        assert settings.conversation.termination_marker == "DONE"
        assert settings.conversation.speaker_selection == "constrained"
        assert settings.conversation.allowed_speakers == ["alice", "bob"]
        assert settings.compaction.max_messages == 12
        assert settings.compaction.strategy == CompactionStrategy.BOOKEND
        assert settings.compaction.preserve_functions is False
        # Unset fields keep their defaults
        assert settings.compaction.max_tokens == 4000
        assert settings.logging.level == "DEBUG"
        assert settings.logging.resolved_log_file == temp_dir / "chorus.log"

    def test_missing_file_uses_defaults(self, temp_dir: Path, clean_env: None) -> None:
        """Test a missing config file yields defaults."""
        settings = load_settings(config_path=temp_dir / "missing.yaml", force_reload=True)
        assert settings == Settings()

    def test_empty_file(self, temp_dir: Path, clean_env: None) -> None:
        """Test an empty YAML file yields defaults."""
        path = temp_dir / "empty.yaml"
        path.write_text("")

        settings = load_settings(config_path=path, force_reload=True)

        assert settings.conversation.max_rounds == 10

    def test_overrides_win(self, temp_config_file: Path, clean_env: None) -> None:
        """Test explicit overrides take precedence over the file."""
        settings = load_settings(
            config_path=temp_config_file,
            force_reload=True,
            overrides={"conversation": {"max_rounds": 7}},
        )

        assert settings.conversation.max_rounds == 7
        assert settings.conversation.admin_name == "Moderator"

    def test_env_var_in_file(
        self, temp_dir: Path, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test ${VAR} references in the file are expanded."""
        monkeypatch.setenv("CHORUS_TEST_ADMIN", "Chair")
        path = temp_dir / "config.yaml"
        path.write_text("conversation:\n  admin_name: ${CHORUS_TEST_ADMIN}\n")

        settings = load_settings(config_path=path, force_reload=True)

        assert settings.conversation.admin_name == "Chair"

    def test_unset_env_var_falls_back(self, temp_dir: Path, clean_env: None) -> None:
        """Test unresolved ${VAR} references fall back to defaults."""
        path = temp_dir / "config.yaml"
        path.write_text("logging:\n  log_file: ${CHORUS_TEST_UNSET_LOG}\n")

        settings = load_settings(config_path=path, force_reload=True)

        assert settings.logging.log_file is None

    def test_unset_env_var_in_list_dropped(self, temp_dir: Path, clean_env: None) -> None:
        """Test unresolved ${VAR} list entries are dropped, not validated."""
        path = temp_dir / "config.yaml"
        path.write_text(
            "conversation:\n  allowed_speakers:\n    - alice\n    - ${CHORUS_TEST_UNSET_NAME}\n"
        )

        settings = load_settings(config_path=path, force_reload=True)

        assert settings.conversation.allowed_speakers == ["alice"]

    def test_prefixed_env_vars(
        self, temp_dir: Path, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test CHORUS_ section__field variables configure settings."""
        monkeypatch.setenv("CHORUS_CONVERSATION__MAX_ROUNDS", "3")
        monkeypatch.setenv("CHORUS_COMPACTION__STRATEGY", "selective")

        settings = load_settings(config_path=temp_dir / "missing.yaml", force_reload=True)

        assert settings.conversation.max_rounds == 3
        assert settings.compaction.strategy == CompactionStrategy.SELECTIVE

    def test_invalid_file_value(self, temp_dir: Path, clean_env: None) -> None:
        """Test invalid values in the file raise ValidationError."""
        path = temp_dir / "config.yaml"
        path.write_text("compaction:\n  strategy: shred\n")

        with pytest.raises(ValidationError):
            load_settings(config_path=path, force_reload=True)

    def test_unknown_sections_ignored(self, temp_dir: Path, clean_env: None) -> None:
        """Test unrelated top-level keys are ignored."""
        path = temp_dir / "config.yaml"
        path.write_text("ui:\n  theme: dark\nconversation:\n  max_rounds: 2\n")

        settings = load_settings(config_path=path, force_reload=True)

        assert settings.conversation.max_rounds == 2


class TestSettingsSingleton:
    """Tests for the cached settings instance."""

    def test_cached(self, temp_config_file: Path, clean_env: None) -> None:
        """Test load_settings caches until reset."""
        first = load_settings(config_path=temp_config_file, force_reload=True)
        assert load_settings() is first
        assert get_settings() is first

    def test_reset(self, temp_config_file: Path, temp_dir: Path, clean_env: None) -> None:
        """Test reset_settings drops the cached instance."""
        first = load_settings(config_path=temp_config_file, force_reload=True)
        reset_settings()

        second = load_settings(config_path=temp_dir / "missing.yaml")

        assert second is not first
        assert second.conversation.max_rounds == 10


class TestCreateDefaultConfig:
    """Tests for writing the default config file."""

    def test_writes_defaults(
        self, temp_dir: Path, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the packaged defaults are copied and load back cleanly."""
        config_dir = temp_dir / ".chorus"
        monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
        monkeypatch.setattr(config_module, "CONFIG_FILE", config_dir / "config.yaml")

        config_module.create_default_config()

        assert (config_dir / "config.yaml").exists()
        settings = load_settings(config_path=config_dir / "config.yaml", force_reload=True)
        assert settings == Settings()
        reset_settings()

    def test_existing_file_kept(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an existing config file is not overwritten."""
        config_dir = temp_dir / ".chorus"
        config_dir.mkdir()
        config_file = config_dir / "config.yaml"
        config_file.write_text("conversation:\n  max_rounds: 1\n")
        monkeypatch.setattr(config_module, "CONFIG_DIR", config_dir)
        monkeypatch.setattr(config_module, "CONFIG_FILE", config_file)

        config_module.create_default_config()

        assert "max_rounds: 1" in config_file.read_text()


def test_settings_env_prefix() -> None:
    """Test the environment prefix is CHORUS_."""
    assert Settings.model_config["env_prefix"] == "CHORUS_"
