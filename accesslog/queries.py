"""Aggregations over parsed access log records.

Each query consumes an iterable of LogRecord and returns plain rows. Rows with
equal counts are ordered by key so output is deterministic.
"""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable

from accesslog.parser import LogRecord
from accesslog.tables import CountryMapping, ResponseCodeTable


@dataclass
class ContentSizeStats:
    count: int = 0
    average: float = 0.0
    minimum: int = 0
    maximum: int = 0


@dataclass
class CountryHits:
    rows: list[tuple[str, str, int]]
    unmapped: int = 0


def _ranked(counter: Counter) -> list[tuple]:
    """Sort by count desc, then key asc."""
    return sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))


def count_records(records: Iterable[LogRecord]) -> int:
    return sum(1 for _ in records)


def content_size_stats(records: Iterable[LogRecord]) -> ContentSizeStats:
    count = 0
    total = 0
    minimum = None
    maximum = None
    for r in records:
        count += 1
        total += r.content_size
        minimum = r.content_size if minimum is None else min(minimum, r.content_size)
        maximum = r.content_size if maximum is None else max(maximum, r.content_size)

    if count == 0:
        return ContentSizeStats()
    return ContentSizeStats(
        count=count,
        average=total / count,
        minimum=minimum,
        maximum=maximum,
    )


def response_code_counts(
    records: Iterable[LogRecord],
    codes: ResponseCodeTable | None = None,
) -> list[tuple[int, str, int]]:
    """(code, description, count), left-joined against the code table."""
    codes = codes or ResponseCodeTable()
    counter = Counter(r.response_code for r in records)
    return [(code, codes.describe(code), n) for code, n in _ranked(counter)]


def top_endpoints(records: Iterable[LogRecord], n: int = 10) -> list[tuple[str, int]]:
    counter = Counter(r.endpoint for r in records)
    return _ranked(counter)[:n]


def top_error_endpoints(records: Iterable[LogRecord], n: int = 10) -> list[tuple[str, int]]:
    """Endpoints of requests that did not return 200."""
    counter = Counter(r.endpoint for r in records if r.response_code != 200)
    return _ranked(counter)[:n]


def frequent_ips(records: Iterable[LogRecord], min_count: int = 10) -> list[tuple[str, int]]:
    """IPs seen strictly more than *min_count* times."""
    counter = Counter(r.ip_address for r in records)
    return [(ip, n) for ip, n in _ranked(counter) if n > min_count]


def distinct_ip_count(records: Iterable[LogRecord]) -> int:
    return len({r.ip_address for r in records})


def hits_by_country(records: Iterable[LogRecord], mapping: CountryMapping) -> CountryHits:
    """(country_name, country_code3, count) for mapped IPs; the rest are counted as unmapped."""
    counter = Counter()
    unmapped = 0
    for r in records:
        country = mapping.lookup(r.ip_address)
        if country is None:
            unmapped += 1
            continue
        counter[(country.name, country.code3)] += 1

    rows = [(name, code3, n) for (name, code3), n in _ranked(counter)]
    return CountryHits(rows=rows, unmapped=unmapped)


def requests_per_day(records: Iterable[LogRecord]) -> list[tuple[str, int]]:
    """Request count per day, keyed by the dd/Mon/yyyy prefix of the raw timestamp.

    Days appear in the order first seen, which for access logs is chronological.
    """
    counter = Counter(r.datetime.split(":", 1)[0] for r in records)
    return list(counter.items())


def method_counts(records: Iterable[LogRecord]) -> list[tuple[str, int]]:
    return _ranked(Counter(r.method for r in records))
