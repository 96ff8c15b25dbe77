"""Access log line parser — frozen dataclass + compiled regex.

One line in, one result out. A line either matches the pattern from its first
character and yields all nine fields, or it yields nothing. Anything after the
content-size field (referer, user agent, stray whitespace) is ignored.
"""

import re
from dataclasses import asdict, astuple, dataclass
from typing import Any

LOG_PATTERN = re.compile(
    r'^(\S+) (\S+) (\S+) '
    r'\[([\w:/]+\s[+\-]\d{4})\] '
    r'"(\S+) (\S+) (\S+)" '
    r'(\d{3}) (\d+)',
    re.ASCII,
)

FIELD_NAMES = (
    "ip_address",
    "client_identd",
    "user_id",
    "datetime",
    "method",
    "endpoint",
    "protocol",
    "response_code",
    "content_size",
)


class ParseError(ValueError):
    """Raised by parse_line_strict when a line does not match."""

    def __init__(self, line: str):
        super().__init__(f"Line does not match access log format: {line!r}")
        self.line = line


@dataclass(frozen=True)
class LogRecord:
    ip_address: str
    client_identd: str
    user_id: str
    datetime: str
    method: str
    endpoint: str
    protocol: str
    response_code: int
    content_size: int

    def as_tuple(self) -> tuple:
        return astuple(self)


def record_to_dict(record: LogRecord) -> dict[str, Any]:
    return asdict(record)


def parse_line(line: str) -> LogRecord | None:
    """Parse a single access log line. Returns None for unparseable lines."""
    match = LOG_PATTERN.match(line.rstrip("\n"))
    if not match:
        return None

    (ip_address, client_identd, user_id, dt, method,
     endpoint, protocol, status_str, size_str) = match.groups()
    try:
        response_code = int(status_str, 10)
        content_size = int(size_str, 10)
    except ValueError:
        return None

    return LogRecord(
        ip_address=ip_address,
        client_identd=client_identd,
        user_id=user_id,
        datetime=dt,
        method=method,
        endpoint=endpoint,
        protocol=protocol,
        response_code=response_code,
        content_size=content_size,
    )


def parse_line_strict(line: str) -> LogRecord:
    """Like parse_line, but raise ParseError instead of returning None."""
    record = parse_line(line)
    if record is None:
        raise ParseError(line)
    return record
