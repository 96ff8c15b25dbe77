"""Output formatters — records as text, NDJSON, or colorized; query rows as tables."""

import json
from typing import Callable, Sequence

from accesslog.parser import LogRecord, record_to_dict

# ANSI color codes, keyed by status class
COLORS = {
    1: "\033[37m",  # white
    2: "\033[32m",  # green
    3: "\033[36m",  # cyan
    4: "\033[33m",  # yellow
    5: "\033[31m",  # red
}
RESET = "\033[0m"


def format_text(record: LogRecord) -> str:
    """Return the record as a Common Log Format line."""
    return (
        f'{record.ip_address} {record.client_identd} {record.user_id} '
        f'[{record.datetime}] "{record.method} {record.endpoint} {record.protocol}" '
        f'{record.response_code} {record.content_size}'
    )


def format_json(record: LogRecord) -> str:
    """Return NDJSON — one JSON object per line, compatible with jq."""
    return json.dumps(record_to_dict(record))


def format_color(record: LogRecord) -> str:
    """Return the record with its response code colored by status class."""
    color = COLORS.get(record.response_code // 100, "")
    return (
        f"[{record.datetime}] {record.ip_address:15s} {record.method:6s} "
        f"{color}{record.response_code}{RESET} {record.endpoint} ({record.content_size} bytes)"
    )


def get_formatter(output_format: str = "text", color: bool = False) -> Callable[[LogRecord], str]:
    """Factory that returns the right formatter based on args."""
    if output_format == "json":
        return format_json
    if color:
        return format_color
    return format_text


def format_table_text(headers: Sequence[str], rows: Sequence[Sequence]) -> str:
    """Left-aligned columns sized to the widest cell."""
    cells = [[str(h) for h in headers]] + [[str(v) for v in row] for row in rows]
    widths = [max(len(row[i]) for row in cells) for i in range(len(headers))]
    lines = []
    for i, row in enumerate(cells):
        lines.append("  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip())
        if i == 0:
            lines.append("  ".join("-" * w for w in widths))
    return "\n".join(lines)


def format_table_json(headers: Sequence[str], rows: Sequence[Sequence]) -> str:
    return json.dumps([dict(zip(headers, row)) for row in rows], indent=2)


def format_table(headers: Sequence[str], rows: Sequence[Sequence], output_format: str = "text") -> str:
    if output_format == "json":
        return format_table_json(headers, rows)
    return format_table_text(headers, rows)
