"""File watcher — monitors the input directory and parses access log files."""

import json
import logging
import os
import tempfile
import time
from datetime import datetime, timezone

from watchdog.events import FileSystemEventHandler

from accesslog.parser import record_to_dict
from accesslog.reader import read_lines
from accesslog.stats import ParseReport, parse_lines, report_to_dict

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.5
STATS_FILENAME = "parsing_stats.json"


def _write_json_atomic(output_dir: str, name: str, payload) -> str:
    os.makedirs(output_dir, exist_ok=True)
    target = os.path.join(output_dir, name)
    tmp_fd, tmp_path = tempfile.mkstemp(dir=output_dir, suffix=".tmp")
    try:
        with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, target)
    except Exception:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    return target


class StatsCollector:
    """Per-file parse reports. Re-processing a file replaces its previous report."""

    def __init__(self, output_dir: str, max_samples: int = 5):
        self._output_dir = output_dir
        self._max_samples = max_samples
        self._file_reports: dict[str, ParseReport] = {}

    def record_file(self, filepath: str, report: ParseReport):
        self._file_reports[filepath] = report

    def aggregate(self) -> ParseReport:
        total = ParseReport(max_samples=self._max_samples)
        for report in self._file_reports.values():
            total.merge(report)
        return total

    def save(self) -> str:
        """Aggregate across all files and write parsing_stats.json atomically."""
        payload = report_to_dict(self.aggregate())
        payload["files_processed"] = len(self._file_reports)
        payload["last_updated"] = datetime.now(timezone.utc).isoformat()
        return _write_json_atomic(self._output_dir, STATS_FILENAME, payload)


class FileWatcher(FileSystemEventHandler):
    """Watches for .log file creation/modification and parses entire files."""

    def __init__(self, output_dir: str, stats: StatsCollector, max_samples: int = 5):
        super().__init__()
        self._output_dir = output_dir
        self._stats = stats
        self._max_samples = max_samples
        self._last_processed: dict[str, float] = {}

    def on_created(self, event):
        if not event.is_directory and str(event.src_path).endswith(".log"):
            self._handle(str(event.src_path))

    def on_modified(self, event):
        if not event.is_directory and str(event.src_path).endswith(".log"):
            self._handle(str(event.src_path))

    def _handle(self, filepath: str):
        """Debounce and process a .log file."""
        now = time.time()
        last = self._last_processed.get(filepath, 0)
        if now - last < DEBOUNCE_SECONDS:
            return
        self._last_processed[filepath] = now
        self.process_file(filepath)

    def process_file(self, filepath: str) -> str | None:
        """Parse every line, write records atomically, update stats. Returns the output path."""
        logger.info("Processing: %s", filepath)
        try:
            lines = [line for line, _ in read_lines(filepath)]
        except OSError as e:
            logger.error("Failed to read %s: %s", filepath, e)
            return None

        result = parse_lines(lines, source=filepath, max_samples=self._max_samples)
        self._stats.record_file(filepath, result.report)

        basename = os.path.splitext(os.path.basename(filepath))[0]
        output_name = f"parsed_{basename}.json"
        target = _write_json_atomic(
            self._output_dir, output_name, [record_to_dict(r) for r in result.records]
        )
        self._stats.save()

        logger.info(
            "  -> %s: %d parsed, %d malformed",
            output_name, result.report.parsed_count, result.report.malformed_count,
        )
        return target

    def process_existing_files(self, input_dir: str):
        """Scan input directory for existing .log files at startup."""
        if not os.path.isdir(input_dir):
            return
        for name in sorted(os.listdir(input_dir)):
            if name.endswith(".log"):
                self.process_file(os.path.join(input_dir, name))
