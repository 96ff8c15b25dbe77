"""Parse accounting — well-formed vs malformed lines, per source."""

import json
import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from accesslog.parser import LogRecord, ParseError, parse_line

logger = logging.getLogger(__name__)

DEFAULT_MAX_SAMPLES = 5


@dataclass
class ParseReport:
    total_lines: int = 0
    parsed_count: int = 0
    malformed_count: int = 0
    malformed_samples: list[str] = field(default_factory=list)
    per_source: dict[str, dict[str, int]] = field(default_factory=dict)
    max_samples: int = DEFAULT_MAX_SAMPLES

    @property
    def success_rate(self) -> float:
        if self.total_lines == 0:
            return 0.0
        return self.parsed_count / self.total_lines

    def record_parsed(self, source: str = ""):
        self.total_lines += 1
        self.parsed_count += 1
        self._source_counts(source)["parsed"] += 1

    def record_malformed(self, line: str, source: str = ""):
        self.total_lines += 1
        self.malformed_count += 1
        self._source_counts(source)["malformed"] += 1
        if len(self.malformed_samples) < self.max_samples:
            self.malformed_samples.append(line)
        logger.debug("Malformed line in %s: %r", source or "<input>", line)

    def _source_counts(self, source: str) -> dict[str, int]:
        return self.per_source.setdefault(source, {"parsed": 0, "malformed": 0})

    def merge(self, other: "ParseReport"):
        """Fold another report's counts into this one."""
        self.total_lines += other.total_lines
        self.parsed_count += other.parsed_count
        self.malformed_count += other.malformed_count
        room = self.max_samples - len(self.malformed_samples)
        if room > 0:
            self.malformed_samples.extend(other.malformed_samples[:room])
        for source, counts in other.per_source.items():
            mine = self._source_counts(source)
            mine["parsed"] += counts["parsed"]
            mine["malformed"] += counts["malformed"]


@dataclass
class ParseResult:
    records: list[LogRecord]
    report: ParseReport


def iter_records(
    lines: Iterable[str],
    report: ParseReport,
    source: str = "",
    strict: bool = False,
) -> Iterator[LogRecord]:
    """Yield records for matching lines, counting every non-blank line in *report*.

    With strict=True the first malformed line raises ParseError instead.
    """
    for line in lines:
        stripped = line.rstrip("\n")
        if not stripped.strip():
            continue
        record = parse_line(stripped)
        if record is None:
            report.record_malformed(stripped, source)
            if strict:
                raise ParseError(stripped)
        else:
            report.record_parsed(source)
            yield record


def parse_lines(
    lines: Iterable[str],
    source: str = "",
    max_samples: int = DEFAULT_MAX_SAMPLES,
) -> ParseResult:
    """Parse a batch of lines. Record order mirrors input order."""
    report = ParseReport(max_samples=max_samples)
    records = list(iter_records(lines, report, source))
    return ParseResult(records=records, report=report)


def log_report_summary(report: ParseReport):
    if report.malformed_count:
        logger.warning(
            "%d of %d lines malformed (%.1f%% parsed)",
            report.malformed_count, report.total_lines, report.success_rate * 100,
        )
    else:
        logger.info("Parsed %d lines, none malformed", report.parsed_count)


def format_report_text(report: ParseReport) -> str:
    """Human-readable data quality summary."""
    lines = []
    lines.append(f"Total lines:     {report.total_lines}")
    lines.append(f"Parsed:          {report.parsed_count}")
    lines.append(f"Malformed:       {report.malformed_count}")
    lines.append(f"Success rate:    {report.success_rate:.1%}")

    if len(report.per_source) > 1:
        lines.append("")
        lines.append("Per source:")
        for source, counts in report.per_source.items():
            lines.append(
                f"  {source}  parsed={counts['parsed']} malformed={counts['malformed']}"
            )

    if report.malformed_samples:
        lines.append("")
        lines.append(f"Malformed samples ({len(report.malformed_samples)}):")
        for sample in report.malformed_samples:
            lines.append(f"  - {sample}")

    return "\n".join(lines)


def report_to_dict(report: ParseReport) -> dict:
    return {
        "total_lines": report.total_lines,
        "parsed_count": report.parsed_count,
        "malformed_count": report.malformed_count,
        "success_rate": round(report.success_rate, 4),
        "malformed_samples": report.malformed_samples,
        "per_source": report.per_source,
    }


def format_report_json(report: ParseReport) -> str:
    return json.dumps(report_to_dict(report), indent=2)
