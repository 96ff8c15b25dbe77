"""Delimited lookup tables joined against parsed records.

Two small reference tables sit beside the access logs:

  * response codes — ``code,description``
  * IP to country   — ``ip<TAB>country_code2<TAB>country_code3<TAB>country_name``

Both are plain fixed-delimiter files. Blank lines and lines starting with
``#`` are skipped.
"""

import logging
from dataclasses import dataclass
from typing import Iterator

logger = logging.getLogger(__name__)

UNKNOWN_DESCRIPTION = "Unknown"

RESPONSE_CODE_COLUMNS = ("code", "description")
COUNTRY_COLUMNS = ("ip", "country_code2", "country_code3", "country_name")


class TableLoadError(ValueError):
    """Raised when a lookup file has a malformed row."""

    def __init__(self, path: str, line_number: int, reason: str):
        super().__init__(f"{path}:{line_number}: {reason}")
        self.path = path
        self.line_number = line_number


def iter_delimited(
    path: str,
    delimiter: str,
    columns: tuple[str, ...],
    skip_header: bool = False,
) -> Iterator[tuple[int, dict[str, str]]]:
    """Yield (line_number, row) for each data row of *path*.

    Raises TableLoadError when a row has the wrong number of fields.
    """
    header_pending = skip_header
    with open(path, "r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            stripped = line.rstrip("\r\n")
            if not stripped.strip() or stripped.lstrip().startswith("#"):
                continue
            if header_pending:
                header_pending = False
                continue
            values = [v.strip() for v in stripped.split(delimiter)]
            if len(values) != len(columns):
                raise TableLoadError(
                    path, line_number,
                    f"expected {len(columns)} fields, got {len(values)}",
                )
            yield line_number, dict(zip(columns, values))


def load_delimited(
    path: str,
    delimiter: str,
    columns: tuple[str, ...],
    skip_header: bool = False,
) -> list[dict[str, str]]:
    """Split each row of *path* on *delimiter* into a dict keyed by *columns*."""
    rows = [row for _, row in iter_delimited(path, delimiter, columns, skip_header)]
    logger.debug("Loaded %d rows from %s", len(rows), path)
    return rows


class ResponseCodeTable:
    """HTTP status code → description."""

    def __init__(self, descriptions: dict[int, str] | None = None):
        self._descriptions = dict(descriptions or {})

    @classmethod
    def load(cls, path: str, delimiter: str = ",", skip_header: bool = False) -> "ResponseCodeTable":
        descriptions = {}
        rows = iter_delimited(path, delimiter, RESPONSE_CODE_COLUMNS, skip_header)
        for line_number, row in rows:
            try:
                code = int(row["code"], 10)
            except ValueError:
                raise TableLoadError(
                    path, line_number, f"invalid response code {row['code']!r}"
                ) from None
            descriptions[code] = row["description"]
        logger.info("Loaded %d response codes from %s", len(descriptions), path)
        return cls(descriptions)

    def describe(self, code: int) -> str:
        return self._descriptions.get(code, UNKNOWN_DESCRIPTION)

    def __contains__(self, code: int) -> bool:
        return code in self._descriptions

    def __len__(self) -> int:
        return len(self._descriptions)


@dataclass(frozen=True)
class Country:
    code2: str
    code3: str
    name: str


class CountryMapping:
    """IP address → Country."""

    def __init__(self, countries: dict[str, Country] | None = None):
        self._countries = dict(countries or {})

    @classmethod
    def load(cls, path: str, delimiter: str = "\t", skip_header: bool = False) -> "CountryMapping":
        countries = {}
        for row in load_delimited(path, delimiter, COUNTRY_COLUMNS, skip_header):
            countries[row["ip"]] = Country(
                code2=row["country_code2"],
                code3=row["country_code3"],
                name=row["country_name"],
            )
        logger.info("Loaded %d IP mappings from %s", len(countries), path)
        return cls(countries)

    def lookup(self, ip: str) -> Country | None:
        return self._countries.get(ip)

    def __len__(self) -> int:
        return len(self._countries)
