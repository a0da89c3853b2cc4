from io import StringIO

import orjson
import pytest

from temple import (
    LogLevel,
    MemoryFileSystem,
    TemplateNotFoundError,
    TemplateStore,
    get_log_level,
    set_log_level,
    with_filesystem,
    with_log_level,
)
from temple._logging import _log_level_from_env, coerce_log_level, create_logger


def _json_lines(stream: StringIO) -> list[dict[str, object]]:
    return [orjson.loads(line) for line in stream.getvalue().splitlines()]


class TestCoerceLogLevel:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("none", LogLevel.NONE),
            ("ERROR", LogLevel.ERROR),
            ("warn", LogLevel.WARN),
            ("warning", LogLevel.WARN),
            (" Info ", LogLevel.INFO),
            ("debug", LogLevel.DEBUG),
            (LogLevel.INFO, LogLevel.INFO),
        ],
    )
    def test_known_levels(self, name: str, expected: LogLevel):
        assert coerce_log_level(name) is expected

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="verbose"):
            coerce_log_level("verbose")


class TestLogLevelFromEnv:
    def test_debug_flag_wins(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("TEMPLE_DEBUG", "1")
        monkeypatch.setenv("TEMPLE_LOG_LEVEL", "error")
        assert _log_level_from_env() is LogLevel.DEBUG

    def test_level_variable(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("TEMPLE_DEBUG", raising=False)
        monkeypatch.setenv("TEMPLE_LOG_LEVEL", "INFO")
        assert _log_level_from_env() is LogLevel.INFO

    def test_unknown_value_is_silent(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("TEMPLE_DEBUG", raising=False)
        monkeypatch.setenv("TEMPLE_LOG_LEVEL", "loud")
        assert _log_level_from_env() is LogLevel.NONE

    def test_unset(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("TEMPLE_DEBUG", raising=False)
        monkeypatch.delenv("TEMPLE_LOG_LEVEL", raising=False)
        assert _log_level_from_env() is LogLevel.NONE


class TestCreateLogger:
    def test_text_output(self):
        stream = StringIO()
        create_logger("info", stream=stream).info("hello", count=3)
        output = stream.getvalue()
        assert "hello" in output
        assert "count=3" in output
        assert "temple" in output

    def test_threshold_filters_lower_levels(self):
        stream = StringIO()
        logger = create_logger("warn", stream=stream)
        logger.info("quiet")
        logger.warning("loud")
        assert "quiet" not in stream.getvalue()
        assert "loud" in stream.getvalue()

    def test_none_is_silent(self):
        stream = StringIO()
        logger = create_logger("none", stream=stream)
        logger.error("nothing")
        logger.critical("still nothing")
        assert stream.getvalue() == ""

    def test_json_output(self):
        stream = StringIO()
        create_logger("debug", log_format="json", stream=stream).debug("x", k="v")
        (entry,) = _json_lines(stream)
        assert entry["event"] == "x"
        assert entry["level"] == "debug"
        assert entry["k"] == "v"
        assert entry["logger"] == "temple"
        assert "timestamp" in entry

    def test_falls_back_to_process_level(self):
        stream = StringIO()
        set_log_level("debug")
        assert get_log_level() is LogLevel.DEBUG
        create_logger(stream=stream).debug("shown")
        assert "shown" in stream.getvalue()

    def test_writes_to_stderr_by_default(self, capsys: pytest.CaptureFixture[str]):
        create_logger("error").error("to stderr")
        captured = capsys.readouterr()
        assert "to stderr" in captured.err
        assert captured.out == ""


class TestStoreLogging:
    def test_silent_by_default(self, capsys: pytest.CaptureFixture[str]):
        set_log_level(LogLevel.NONE)
        fs = MemoryFileSystem.from_tree({"html": {"a.html": "A"}})
        store = TemplateStore("/html", with_filesystem(fs))
        store.compile()
        with pytest.raises(TemplateNotFoundError):
            store.render_string("missing")
        assert capsys.readouterr().err == ""

    def test_compile_events(self):
        stream = StringIO()
        fs = MemoryFileSystem.from_tree({"html": {"a.html": "A"}})
        store = TemplateStore(
            "/html",
            with_filesystem(fs),
            with_log_level("info", log_format="json", stream=stream),
        )
        store.compile()

        entries = _json_lines(stream)
        events = [entry["event"] for entry in entries]
        assert events == ["compiling", "parsed", "compiled"]
        assert entries[-1]["templates"] == 1
        assert entries[-1]["directory"] == "/html"
        assert entries[0]["delimiters"] == ["<%", "%>"]

    def test_ambiguous_block_warning(self):
        stream = StringIO()
        fs = MemoryFileSystem.from_tree(
            {
                "html": {
                    "a.html": "<% block title %>A<% endblock %>",
                    "b.html": "<% block title %>B<% endblock %>",
                }
            }
        )
        store = TemplateStore(
            "/html", with_filesystem(fs), with_log_level("warning", stream=stream)
        )
        store.compile()
        output = stream.getvalue()
        assert "ambiguous block name" in output
        assert "compiling" not in output

    def test_render_failure_is_logged(self):
        stream = StringIO()
        fs = MemoryFileSystem.from_tree({"html": {"a.html": "<%= nope() %>"}})
        store = TemplateStore(
            "/html",
            with_filesystem(fs),
            with_log_level("error", log_format="json", stream=stream),
        )
        store.compile()
        with pytest.raises(Exception, match="nope"):
            store.render_string("a.html")
        (entry,) = _json_lines(stream)
        assert entry["event"] == "render failed"
        assert entry["name"] == "a.html"

    def test_store_level_overrides_process_level(self):
        stream = StringIO()
        set_log_level("debug")
        fs = MemoryFileSystem.from_tree({"html": {"a.html": "A"}})
        store = TemplateStore(
            "/html", with_filesystem(fs), with_log_level("none", stream=stream)
        )
        store.compile()
        assert stream.getvalue() == ""
