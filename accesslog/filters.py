"""Filter predicates for access log records — status, method, endpoint search, IP."""

from typing import Callable

from accesslog.parser import LogRecord


def filter_by_status(record: LogRecord, status: str) -> bool:
    """True if the response code matches an exact code ("404") or a class ("4xx")."""
    status = status.strip().lower()
    if len(status) == 3 and status.endswith("xx") and status[0].isdigit():
        return record.response_code // 100 == int(status[0])
    return record.response_code == int(status)


def filter_by_method(record: LogRecord, method: str) -> bool:
    """True if the HTTP method matches (case-insensitive)."""
    return record.method.upper() == method.upper()


def filter_by_search(record: LogRecord, keyword: str) -> bool:
    """True if keyword appears in the endpoint (case-insensitive)."""
    return keyword.lower() in record.endpoint.lower()


def filter_by_ip(record: LogRecord, ip: str) -> bool:
    return record.ip_address == ip


def validate_status(status: str) -> str:
    """Return *status* unchanged if usable by filter_by_status, else raise ValueError."""
    s = status.strip().lower()
    if len(s) == 3 and s.endswith("xx") and s[0].isdigit():
        return status
    if len(s) == 3 and s.isdigit():
        return status
    raise ValueError(f"Invalid status filter: {status!r} (expected e.g. 404 or 4xx)")


def build_filter_chain(args) -> Callable[[LogRecord], bool]:
    """Combine all active filters from parsed args into a single callable.

    Returns a function that ANDs all active predicates together.
    """
    predicates = []

    if getattr(args, "status", None):
        status = validate_status(args.status)
        predicates.append(lambda record, s=status: filter_by_status(record, s))

    if getattr(args, "method", None):
        method = args.method
        predicates.append(lambda record, m=method: filter_by_method(record, m))

    if getattr(args, "search", None):
        keyword = args.search
        predicates.append(lambda record, k=keyword: filter_by_search(record, k))

    if getattr(args, "ip", None):
        ip = args.ip
        predicates.append(lambda record, i=ip: filter_by_ip(record, i))

    if not predicates:
        return lambda record: True

    def combined(record: LogRecord) -> bool:
        return all(p(record) for p in predicates)

    return combined
