from pathlib import Path

import pytest
from pydantic import ValidationError

from temple import (
    DEFAULT_EXTENSIONS,
    DEFAULT_FUNCTIONS,
    DelimiterError,
    Delimiters,
    LogLevel,
    MemoryFileSystem,
    SettingsError,
    StoreConfig,
    TempleSettings,
    TemplateStore,
    dev_mode,
    load_settings,
    with_delimiters,
    with_extensions,
    with_extra_functions,
    with_filesystem,
    with_functions,
    with_log_level,
)


class TestStoreConfig:
    def test_defaults(self):
        config = StoreConfig()
        assert config.reload is False
        assert dict(config.functions) == dict(DEFAULT_FUNCTIONS)
        assert config.delimiters is None
        assert config.extensions == DEFAULT_EXTENSIONS
        assert config.filesystem is None
        assert config.log_level is None
        assert config.log_format == "text"

    def test_is_frozen(self):
        with pytest.raises(AttributeError):
            StoreConfig().reload = True  # type: ignore[misc]


class TestOptions:
    def test_dev_mode(self):
        assert dev_mode(StoreConfig()).reload is True

    def test_options_return_copies(self):
        config = StoreConfig()
        dev_mode(config)
        assert config.reload is False

    def test_with_functions_replaces(self):
        config = with_functions({"f": len})(StoreConfig())
        assert dict(config.functions) == {"f": len}

    def test_with_functions_copies_the_map(self):
        functions = {"f": len}
        config = with_functions(functions)(StoreConfig())
        functions["g"] = str
        assert "g" not in config.functions

    def test_with_extra_functions_layers(self):
        config = with_extra_functions({"f": len}, {"f": str, "g": repr})(StoreConfig())
        assert config.functions["f"] is str
        assert config.functions["g"] is repr
        assert "markd" in config.functions

    def test_with_extra_functions_does_not_mutate_previous(self):
        base = StoreConfig()
        with_extra_functions({"f": len})(base)
        assert "f" not in base.functions

    def test_with_delimiters(self):
        config = with_delimiters("[[", "]]")(StoreConfig())
        assert config.delimiters == Delimiters("[[", "]]")

    def test_with_delimiters_validates_eagerly(self):
        with pytest.raises(DelimiterError):
            with_delimiters("", "]]")

    def test_with_extensions(self):
        config = with_extensions(".j2", ".txt")(StoreConfig())
        assert config.extensions == (".j2", ".txt")

    def test_with_filesystem(self):
        fs = MemoryFileSystem()
        assert with_filesystem(fs)(StoreConfig()).filesystem is fs

    def test_with_log_level(self):
        config = with_log_level("warning", log_format="json")(StoreConfig())
        assert config.log_level is LogLevel.WARN
        assert config.log_format == "json"

    def test_with_log_level_keeps_format(self):
        config = with_log_level("debug", log_format="json")(StoreConfig())
        config = with_log_level("info")(config)
        assert config.log_format == "json"

    def test_with_log_level_validates_eagerly(self):
        with pytest.raises(ValueError, match="loud"):
            with_log_level("loud")

    def test_options_apply_in_order(self):
        store = TemplateStore(
            "/html", with_extensions(".a"), with_extensions(".b"), dev_mode
        )
        assert store.config.extensions == (".b",)
        assert store.reload is True


class TestTempleSettings:
    def test_defaults(self):
        settings = TempleSettings()
        assert settings.directory == Path("templates")
        assert settings.reload is False
        assert settings.delimiters is None
        assert settings.extensions == DEFAULT_EXTENSIONS

    def test_warning_alias(self):
        assert TempleSettings(log_level="warning").log_level is LogLevel.WARN

    @pytest.mark.parametrize(
        "values",
        [
            {"extensions": ["html"]},
            {"extensions": ["."]},
            {"delimiters": ["", "%>"]},
            {"delimiters": ["<%"]},
            {"delimiters": ["a", "b", "c"]},
            {"log_level": "loud"},
            {"log_format": "xml"},
            {"unknown": True},
        ],
    )
    def test_rejects_invalid_values(self, values: dict[str, object]):
        with pytest.raises(ValidationError):
            TempleSettings.model_validate(values)

    def test_to_config(self):
        settings = TempleSettings(
            reload=True,
            delimiters=("{{", "}}"),
            extensions=(".j2",),
            log_level=LogLevel.INFO,
            log_format="json",
        )
        config = settings.to_config()
        assert config.reload is True
        assert config.delimiters == Delimiters("{{", "}}")
        assert config.extensions == (".j2",)
        assert config.log_level is LogLevel.INFO
        assert config.log_format == "json"

    def test_to_config_applies_options_last(self):
        config = TempleSettings(extensions=(".j2",)).to_config(with_extensions(".x"))
        assert config.extensions == (".x",)

    def test_store_from_settings(self):
        fs = MemoryFileSystem.from_tree({"html": {"a.html": "[[= v ]]"}})
        settings = TempleSettings(
            directory=Path("/html"), reload=True, delimiters=("[[", "]]")
        )
        store = TemplateStore.from_settings(settings, with_filesystem(fs))
        assert store.directory == str(Path("/html"))
        assert store.filesystem is fs
        assert store.render_string("a.html", {"v": "ok"}) == "ok"


class TestLoadSettings:
    def test_top_level_table(self, tmp_path: Path):
        path = tmp_path / "temple.toml"
        path.write_text('directory = "site"\nreload = true\n')
        settings = load_settings(path)
        assert settings.directory == (tmp_path / "site").resolve()
        assert settings.reload is True

    def test_temple_table(self, tmp_path: Path):
        path = tmp_path / "settings.toml"
        path.write_text('[temple]\ndelimiters = ["{{", "}}"]\n')
        assert load_settings(path).delimiters == ("{{", "}}")

    def test_tool_temple_table(self, tmp_path: Path):
        path = tmp_path / "pyproject.toml"
        path.write_text('[tool.temple]\nextensions = [".j2"]\nlog_level = "debug"\n')
        settings = load_settings(path)
        assert settings.extensions == (".j2",)
        assert settings.log_level is LogLevel.DEBUG

    def test_absolute_directory_is_kept(self, tmp_path: Path):
        target = tmp_path / "elsewhere"
        path = tmp_path / "temple.toml"
        path.write_text(f"directory = {str(target)!r}\n")
        assert load_settings(path).directory == target

    def test_missing_file(self, tmp_path: Path):
        path = tmp_path / "missing.toml"
        with pytest.raises(SettingsError, match="Failed to read") as exc_info:
            load_settings(path)
        assert exc_info.value.path == str(path)

    def test_invalid_toml(self, tmp_path: Path):
        path = tmp_path / "temple.toml"
        path.write_text("directory = \n")
        with pytest.raises(SettingsError, match="Failed to parse"):
            load_settings(path)

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "temple.toml"
        path.write_text('extensions = ["html"]\n')
        with pytest.raises(SettingsError, match="Invalid settings"):
            load_settings(path)

    def test_tool_must_be_a_table(self, tmp_path: Path):
        path = tmp_path / "pyproject.toml"
        path.write_text('tool = "x"\n')
        with pytest.raises(SettingsError, match="tool must be a table"):
            load_settings(path)

    def test_section_must_be_a_table(self, tmp_path: Path):
        path = tmp_path / "temple.toml"
        path.write_text("temple = 1\n")
        with pytest.raises(SettingsError, match="must be a table"):
            load_settings(path)
