"""Unit tests for the rotation-aware file sink."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import pytest

from filesink.config import LoggingSettings, MemoryConfigStore, SinkOptions
from filesink.guard import sanitize
from filesink.sinks import FileHandleManager, FileSink, LogEvent, WriteResult, build_sinks, file_identity

TS = datetime(2024, 3, 5, 10, 0, 0)


def make_sink(**options) -> FileSink:
    return FileSink(SinkOptions.from_mapping(options))


def test_scenario_level_filter_and_dated_path(tmp_path):
    sink = make_sink(path=str(tmp_path / "app_$date.log"), level="warn")

    assert sink.handle_event(logging.INFO, "ignored", TS) is False
    assert list(tmp_path.iterdir()) == []

    assert sink.handle_event(logging.ERROR, "failure", TS) is True
    sink.close()

    target = tmp_path / "app_20240305.log"
    assert target.read_text(encoding="utf-8").splitlines() == ["10:00:00.000 [error] failure"]
    assert sink.metrics.snapshot()["events_filtered"] == 1


def test_events_are_appended_in_arrival_order(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    for index in range(5):
        assert sink.handle_event(logging.INFO, f"event {index}", TS)
    sink.close()

    assert path.read_text(encoding="utf-8").splitlines() == [f"event {i}" for i in range(5)]


def test_existing_content_is_preserved(tmp_path):
    path = tmp_path / "app.log"
    path.write_text("previous\n", encoding="utf-8")
    sink = make_sink(path=str(path), format="$message\n")

    sink.handle_event(logging.INFO, "next", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "previous\nnext\n"


def test_sink_without_path_drops_everything(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sink = FileSink()

    assert sink.current_path() is None
    assert sink.handle_event(logging.CRITICAL, "lost", TS) is False
    assert list(tmp_path.iterdir()) == []


def test_rename_rotation_reopens_target(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    sink.handle_event(logging.INFO, "before", TS)
    rotated = tmp_path / "app.log.1"
    path.rename(rotated)
    sink.handle_event(logging.INFO, "after", TS)
    sink.close()

    assert rotated.read_text(encoding="utf-8") == "before\n"
    assert path.read_text(encoding="utf-8") == "after\n"
    assert sink.metrics.snapshot()["rotations"] == 1


def test_delete_and_recreate_rotation(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    sink.handle_event(logging.INFO, "first", TS)
    old_identity = sink._handle.identity
    path.unlink()
    path.write_text("", encoding="utf-8")
    assert file_identity(str(path)) != old_identity

    assert sink.handle_event(logging.INFO, "second", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "second\n"


def test_deleted_file_is_recreated(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    sink.handle_event(logging.INFO, "first", TS)
    path.unlink()
    sink.handle_event(logging.INFO, "second", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "second\n"


def test_path_follows_the_clock(tmp_path):
    sink = make_sink(path=str(tmp_path / "app_$date_$hour.log"), format="$message\n")

    sink.handle_event(logging.INFO, "ten", datetime(2024, 3, 5, 10, 59, 59))
    assert sink.open_path == str(tmp_path / "app_20240305_10.log")
    sink.handle_event(logging.INFO, "eleven", datetime(2024, 3, 5, 11, 0, 0))
    sink.close()

    assert (tmp_path / "app_20240305_10.log").read_text(encoding="utf-8") == "ten\n"
    assert (tmp_path / "app_20240305_11.log").read_text(encoding="utf-8") == "eleven\n"
    assert sink.metrics.snapshot()["rotations"] == 0


def test_missing_parent_directories_are_created(tmp_path):
    path = tmp_path / "a" / "b" / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    assert sink.handle_event(logging.INFO, "nested", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "nested\n"


def test_open_failure_drops_event_without_raising(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    sink = make_sink(path=str(blocker / "app.log"))

    assert sink.handle_event(logging.ERROR, "lost", TS) is False
    assert sink.is_open is False

    counters = sink.metrics.snapshot()
    assert counters["open_failures"] == 1
    assert counters["events_dropped"] == 1


def test_unencodable_text_is_sanitized_and_written(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    assert sink.handle_event(logging.INFO, "bad \udcff byte", TS)
    assert sink.handle_event(logging.INFO, b"caf\xc3\xa9 \xff", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "bad \ufffd byte\ncafé \ufffd\n"
    assert sink.metrics.snapshot()["encoding_retries"] == 2


def test_written_bytes_match_sanitized_text(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")

    assert sink.handle_event(logging.INFO, b"a\xe2\x82b", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == sanitize(b"a\xe2\x82b") + "\n"


def test_path_with_nul_character_drops_event_without_raising(tmp_path):
    sink = FileSink(SinkOptions(path=str(tmp_path / "a\x00b.log")))

    assert sink.handle_event(logging.ERROR, "x", TS) is False
    assert sink.is_open is False
    assert sink.metrics.snapshot()["open_failures"] == 1
    assert file_identity(str(tmp_path / "a\x00b.log")) is None


def test_failed_retry_drops_handle_until_next_event(tmp_path, monkeypatch):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")
    sink.handle_event(logging.INFO, "ok", TS)

    monkeypatch.setattr(sink._handle, "write", lambda text: WriteResult.RETRY)
    assert sink.handle_event(logging.INFO, "broken", TS) is False
    assert sink.is_open is False
    assert sink.metrics.snapshot()["write_failures"] == 1

    monkeypatch.undo()
    assert sink.handle_event(logging.INFO, "recovered", TS)
    sink.close()

    assert path.read_text(encoding="utf-8") == "ok\nrecovered\n"


def test_fatal_write_is_not_retried(tmp_path, monkeypatch):
    sink = make_sink(path=str(tmp_path / "app.log"))
    calls = []

    def failing_write(text):
        calls.append(text)
        return WriteResult.FATAL

    monkeypatch.setattr(sink._handle, "write", failing_write)

    assert sink.handle_event(logging.INFO, "lost", TS) is False
    assert len(calls) == 1
    assert sink.metrics.snapshot()["encoding_retries"] == 0


def test_metadata_is_filtered_and_ordered_by_configuration(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$metadata$message\n", metadata=["request_id", "user", "absent"])

    sink.handle_event(logging.INFO, "hi", TS, {"user": "ana", "other": 1, "request_id": "r1"})
    sink.handle_event(logging.INFO, "pairs", TS, [("user", "bob")])
    sink.close()

    assert path.read_text(encoding="utf-8").splitlines() == ["request_id=r1 user=ana hi", "user=bob pairs"]


def test_handle_accepts_log_event(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="[$level] $message\n")

    assert sink.handle(LogEvent(level=logging.WARNING, message="event", timestamp=TS))
    sink.close()

    assert path.read_text(encoding="utf-8") == "[warn] event\n"


def test_reconfigure_closes_handle_and_switches_path(tmp_path):
    first = tmp_path / "first.log"
    second = tmp_path / "second.log"
    sink = make_sink(path=str(first), format="$message\n")
    sink.handle_event(logging.INFO, "one", TS)
    assert sink.is_open

    sink.reconfigure({"path": str(second)})
    assert sink.is_open is False
    assert sink.current_path() == str(second)

    sink.handle_event(logging.INFO, "two", TS)
    sink.close()

    assert first.read_text(encoding="utf-8") == "one\n"
    # Format survives the merge.
    assert second.read_text(encoding="utf-8") == "two\n"


def test_reconfigure_to_no_path_stops_writing(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path), format="$message\n")
    sink.handle_event(logging.INFO, "kept", TS)

    sink.reconfigure({"path": None})

    assert sink.is_open is False
    assert sink.handle_event(logging.INFO, "dropped", TS) is False
    assert path.read_text(encoding="utf-8") == "kept\n"


def test_reconfigure_with_invalid_options_keeps_state(tmp_path):
    path = tmp_path / "app.log"
    sink = make_sink(path=str(path))

    with pytest.raises(ValueError, match=r"\$bogus"):
        sink.reconfigure({"path": str(tmp_path / "app_$bogus.log")})

    assert sink.current_path() == str(path)


def test_current_path_returns_template_not_rendered_path(tmp_path):
    template = str(tmp_path / "app_$date.log")
    sink = make_sink(path=template)
    sink.handle_event(logging.INFO, "x", TS)

    assert sink.current_path() == template
    assert sink.open_path == str(tmp_path / "app_20240305.log")
    sink.close()


def test_initialize_loads_and_persists_options(tmp_path):
    store = MemoryConfigStore({"dev": {"path": str(tmp_path / "dev.log"), "level": "info"}})

    sink = FileSink.initialize("dev", store)
    assert sink.current_path() == str(tmp_path / "dev.log")
    assert sink.options.level == logging.INFO

    sink.reconfigure({"level": "error"})

    stored = store.get("dev")
    assert stored["level"] == "error"
    assert stored["path"] == str(tmp_path / "dev.log")

    again = FileSink.initialize("dev", store)
    assert again.options.level == logging.ERROR


def test_initialize_unknown_name_is_noop_sink():
    sink = FileSink.initialize("missing", MemoryConfigStore())

    assert sink.current_path() is None
    assert sink.name == "missing"


def test_build_sinks_creates_one_sink_per_backend(tmp_path):
    settings = LoggingSettings.from_mapping(
        {
            "backends": {
                "errors": {"path": str(tmp_path / "errors.log"), "level": "error"},
                "silent": {},
            }
        }
    )

    sinks = build_sinks(settings)

    assert set(sinks) == {"errors", "silent"}
    assert sinks["errors"].options.level == logging.ERROR
    assert sinks["silent"].current_path() is None


def test_handle_manager_reports_identity_of_open_file(tmp_path):
    path = tmp_path / "app.log"
    manager = FileHandleManager()

    assert manager.ensure(str(path))
    assert manager.identity == file_identity(str(path))
    assert manager.write("line\n") is WriteResult.OK
    manager.close()

    assert manager.write("late\n") is WriteResult.FATAL
    assert Path(path).read_text(encoding="utf-8") == "line\n"


def test_file_identity_of_missing_path_is_none(tmp_path):
    assert file_identity(str(tmp_path / "nope.log")) is None
