"""Generator-based file reading, glob expansion, and tail."""

import glob
import gzip
import os
import time
from typing import Generator, TextIO


def _open_text(filepath: str) -> TextIO:
    """Open plain or gzip-compressed log files as text."""
    if filepath.endswith(".gz"):
        return gzip.open(filepath, "rt", encoding="utf-8", errors="replace")
    return open(filepath, "r", encoding="utf-8", errors="replace")


def read_lines(filepath: str) -> Generator[tuple[str, str], None, None]:
    """Yield (line, filepath) for each line in a single file."""
    with _open_text(filepath) as f:
        for line in f:
            yield line, filepath


def read_multiple(paths: list[str]) -> Generator[tuple[str, str], None, None]:
    """Yield (line, filepath) from multiple files, sequentially."""
    for path in paths:
        yield from read_lines(path)


def expand_paths(raw_paths: list[str]) -> list[str]:
    """Expand globs, deduplicate, and validate that files exist.

    Raises FileNotFoundError if a non-glob path doesn't exist.
    Raises FileNotFoundError if expansion produces zero files.
    """
    expanded = []
    seen = set()

    for raw in raw_paths:
        if any(c in raw for c in ("*", "?", "[")):
            for m in sorted(glob.glob(raw)):
                if os.path.isfile(m) and m not in seen:
                    seen.add(m)
                    expanded.append(m)
        else:
            if not os.path.isfile(raw):
                raise FileNotFoundError(f"File not found: {raw}")
            if raw not in seen:
                seen.add(raw)
                expanded.append(raw)

    if not expanded:
        raise FileNotFoundError("No log files found matching the given paths")

    return expanded


def tail_file(filepath: str, poll_interval: float = 0.1) -> Generator[tuple[str, str], None, None]:
    """Seek to end of file and yield new lines as they appear.

    Polls with time.sleep(poll_interval). Runs until interrupted. A partial
    last line is held back until its newline arrives. Compressed files
    cannot be followed.
    """
    if filepath.endswith(".gz"):
        raise ValueError(f"Cannot tail a compressed file: {filepath}")

    with _open_text(filepath) as f:
        f.seek(0, os.SEEK_END)
        pending = ""
        while True:
            chunk = f.read()
            if not chunk:
                time.sleep(poll_interval)
                continue
            *complete, pending = (pending + chunk).split("\n")
            for line in complete:
                yield line + "\n", filepath
