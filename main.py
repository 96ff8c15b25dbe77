"""access-log — parse Apache access logs and run exploratory queries over them."""

import logging
import sys
from argparse import ArgumentParser
from itertools import islice

from accesslog import queries
from accesslog.config import ConfigError, load_config
from accesslog.filters import build_filter_chain
from accesslog.formatter import format_table, get_formatter
from accesslog.parser import ParseError
from accesslog.reader import expand_paths, read_lines, tail_file
from accesslog.stats import (
    ParseReport,
    format_report_json,
    format_report_text,
    iter_records,
    log_report_summary,
)
from accesslog.tables import CountryMapping, ResponseCodeTable, TableLoadError

logger = logging.getLogger("accesslog")

QUERIES = (
    "records",
    "count",
    "content-size",
    "response-codes",
    "top-endpoints",
    "error-endpoints",
    "frequent-ips",
    "distinct-ips",
    "countries",
    "daily",
    "methods",
)


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = ArgumentParser(
        prog="access-log",
        description="Parse Apache access logs and run exploratory queries.",
    )
    parser.add_argument(
        "files",
        nargs="+",
        help="Access log path(s) or glob pattern(s); .gz files are supported",
    )
    parser.add_argument(
        "--query",
        choices=QUERIES,
        default="records",
        help="Query to run (default: records)",
    )
    parser.add_argument(
        "--response-codes",
        help="Delimited response code table (code,description)",
    )
    parser.add_argument(
        "--ip-mapping",
        help="Delimited IP-to-country table (ip, code2, code3, name)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Limit output to N rows",
    )
    parser.add_argument(
        "--min-count",
        type=int,
        help="frequent-ips: report IPs seen more than N times",
    )
    parser.add_argument(
        "--status",
        help="Filter by response code (e.g. 404) or class (e.g. 4xx)",
    )
    parser.add_argument(
        "--method",
        help="Filter by HTTP method (case-insensitive)",
    )
    parser.add_argument(
        "--search",
        help="Filter by keyword in endpoint (case-insensitive)",
    )
    parser.add_argument(
        "--ip",
        help="Filter by client IP address",
    )
    parser.add_argument(
        "--output",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--color",
        action="store_true",
        help="Colorize records by status class (ANSI)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Abort on the first malformed line instead of skipping it",
    )
    parser.add_argument(
        "--tail",
        action="store_true",
        help="Follow a log file for new entries (like tail -f)",
    )
    parser.add_argument(
        "--report",
        action="store_true",
        help="Print a parse quality report to stderr when done",
    )
    parser.add_argument(
        "--config",
        help="Path to a YAML config file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _fail(message: str):
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run_query(args, config, records) -> str:
    """Run an aggregate query over materialized records and return formatted output."""
    limit = args.limit if args.limit is not None else config.top_n
    fmt = args.output

    if args.query == "count":
        return format_table(["count"], [(queries.count_records(records),)], fmt)

    if args.query == "distinct-ips":
        return format_table(["distinct_ips"], [(queries.distinct_ip_count(records),)], fmt)

    if args.query == "content-size":
        s = queries.content_size_stats(records)
        return format_table(
            ["count", "average", "minimum", "maximum"],
            [(s.count, round(s.average, 2), s.minimum, s.maximum)],
            fmt,
        )

    if args.query == "response-codes":
        path = args.response_codes or config.response_codes_path
        codes = (
            ResponseCodeTable.load(path, config.response_codes_delimiter)
            if path else ResponseCodeTable()
        )
        rows = queries.response_code_counts(records, codes)
        return format_table(["response_code", "description", "count"], rows[:limit], fmt)

    if args.query == "top-endpoints":
        return format_table(["endpoint", "count"], queries.top_endpoints(records, limit), fmt)

    if args.query == "error-endpoints":
        return format_table(["endpoint", "count"], queries.top_error_endpoints(records, limit), fmt)

    if args.query == "frequent-ips":
        min_count = args.min_count if args.min_count is not None else config.frequent_ip_threshold
        rows = queries.frequent_ips(records, min_count)
        if args.limit is not None:
            rows = rows[:args.limit]
        return format_table(["ip_address", "count"], rows, fmt)

    if args.query == "countries":
        path = args.ip_mapping or config.ip_mapping_path
        if not path:
            _fail("--query countries requires --ip-mapping (or ip_mapping_path in config)")
        mapping = CountryMapping.load(path, config.ip_mapping_delimiter)
        hits = queries.hits_by_country(records, mapping)
        if hits.unmapped:
            logger.info("%d requests from unmapped IPs", hits.unmapped)
        return format_table(["country", "code3", "count"], hits.rows[:limit], fmt)

    if args.query == "daily":
        rows = queries.requests_per_day(records)
        if args.limit is not None:
            rows = rows[:args.limit]
        return format_table(["day", "count"], rows, fmt)

    if args.query == "methods":
        return format_table(["method", "count"], queries.method_counts(records), fmt)

    raise ValueError(f"Unknown query: {args.query}")


def run_pipeline(args):
    """Assemble and execute the generator pipeline."""
    # Validate incompatible combos
    if args.tail and args.query != "records":
        _fail("--tail can only be used with --query records")

    if args.tail and len(args.files) > 1:
        _fail("--tail requires a single file")

    if args.tail and args.files[0].endswith(".gz"):
        _fail("--tail cannot follow a compressed file")

    if args.limit is not None and args.limit < 0:
        _fail("--limit must not be negative")

    config = load_config(args.config)

    try:
        filter_fn = build_filter_chain(args)
    except ValueError as e:
        _fail(str(e))

    paths = expand_paths(args.files)
    report = ParseReport(max_samples=config.max_malformed_samples)

    def parsed():
        if args.tail:
            # Tail mode: single file, stream forever
            lines = (line for line, _ in tail_file(paths[0]))
            yield from iter_records(lines, report, source=paths[0], strict=args.strict)
            return
        for path in paths:
            lines = (line for line, _ in read_lines(path))
            yield from iter_records(lines, report, source=path, strict=args.strict)

    records = (r for r in parsed() if filter_fn(r))

    try:
        if args.query == "records":
            formatter = get_formatter(output_format=args.output, color=args.color)
            if args.limit is not None:
                records = islice(records, args.limit)
            for record in records:
                print(formatter(record))
        else:
            print(_run_query(args, config, list(records)))
    finally:
        log_report_summary(report)
        if args.report:
            if args.output == "json":
                print(format_report_json(report), file=sys.stderr)
            else:
                print(format_report_text(report), file=sys.stderr)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [ACCESSLOG] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        run_pipeline(args)
    except (ConfigError, TableLoadError, FileNotFoundError, ParseError) as e:
        _fail(str(e))
    except (KeyboardInterrupt, BrokenPipeError):
        sys.exit(0)


if __name__ == "__main__":
    main()
