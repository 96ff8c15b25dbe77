"""Tests for the directory watcher (files processed directly, no observer)."""

import json
import os
from types import SimpleNamespace

import pytest

from accesslog.watcher import STATS_FILENAME, FileWatcher, StatsCollector

GOOD = '10.0.0.1 - - [14/Aug/2015:00:05:15 -0800] "GET /a HTTP/1.1" 200 10\n'
BAD = "garbage line\n"


@pytest.fixture
def dirs(tmp_path):
    input_dir = tmp_path / "logs"
    output_dir = tmp_path / "parsed"
    input_dir.mkdir()
    return input_dir, output_dir


@pytest.fixture
def watcher(dirs):
    _, output_dir = dirs
    stats = StatsCollector(str(output_dir))
    return FileWatcher(str(output_dir), stats)


def _read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


class TestProcessFile:
    def test_writes_parsed_records(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "access.log"
        log.write_text(GOOD + BAD + GOOD)

        target = watcher.process_file(str(log))

        assert target == os.path.join(str(output_dir), "parsed_access.json")
        records = _read_json(target)
        assert len(records) == 2
        assert records[0]["ip_address"] == "10.0.0.1"
        assert records[0]["response_code"] == 200

    def test_writes_stats(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "access.log"
        log.write_text(GOOD + BAD)
        watcher.process_file(str(log))

        stats = _read_json(output_dir / STATS_FILENAME)
        assert stats["total_lines"] == 2
        assert stats["parsed_count"] == 1
        assert stats["malformed_count"] == 1
        assert stats["malformed_samples"] == ["garbage line"]
        assert stats["files_processed"] == 1
        assert "last_updated" in stats

    def test_reprocessing_replaces_counts(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "access.log"
        log.write_text(GOOD + BAD)
        watcher.process_file(str(log))
        log.write_text(GOOD)
        watcher.process_file(str(log))

        stats = _read_json(output_dir / STATS_FILENAME)
        assert stats["total_lines"] == 1
        assert stats["malformed_count"] == 0

    def test_unreadable_file_returns_none(self, dirs, watcher):
        input_dir, _ = dirs
        assert watcher.process_file(str(input_dir / "missing.log")) is None

    def test_no_temp_files_left(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "access.log"
        log.write_text(GOOD)
        watcher.process_file(str(log))
        assert not [n for n in os.listdir(output_dir) if n.endswith(".tmp")]


class TestProcessExisting:
    def test_only_log_files(self, dirs, watcher):
        input_dir, output_dir = dirs
        (input_dir / "a.log").write_text(GOOD)
        (input_dir / "b.log").write_text(GOOD + GOOD)
        (input_dir / "notes.txt").write_text(GOOD)

        watcher.process_existing_files(str(input_dir))

        names = sorted(os.listdir(output_dir))
        assert names == ["parsed_a.json", "parsed_b.json", STATS_FILENAME]
        assert _read_json(output_dir / STATS_FILENAME)["parsed_count"] == 3

    def test_missing_dir_is_noop(self, tmp_path, watcher):
        watcher.process_existing_files(str(tmp_path / "nope"))


class TestEvents:
    def test_created_event_processes_log(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "new.log"
        log.write_text(GOOD)
        watcher.on_created(SimpleNamespace(is_directory=False, src_path=str(log)))
        assert (output_dir / "parsed_new.json").exists()

    def test_ignores_other_files(self, dirs, watcher):
        input_dir, output_dir = dirs
        other = input_dir / "new.txt"
        other.write_text(GOOD)
        watcher.on_created(SimpleNamespace(is_directory=False, src_path=str(other)))
        assert not output_dir.exists()

    def test_debounce(self, dirs, watcher):
        input_dir, output_dir = dirs
        log = input_dir / "busy.log"
        log.write_text(GOOD)
        event = SimpleNamespace(is_directory=False, src_path=str(log))
        watcher.on_modified(event)
        log.write_text(GOOD + GOOD)
        watcher.on_modified(event)
        assert len(_read_json(output_dir / "parsed_busy.json")) == 1


class TestStatsCollector:
    def test_aggregate_across_files(self, tmp_path):
        from accesslog.stats import parse_lines

        stats = StatsCollector(str(tmp_path))
        stats.record_file("a.log", parse_lines([GOOD, BAD], source="a.log").report)
        stats.record_file("b.log", parse_lines([GOOD], source="b.log").report)
        total = stats.aggregate()
        assert total.parsed_count == 2
        assert total.malformed_count == 1
        assert set(total.per_source) == {"a.log", "b.log"}
