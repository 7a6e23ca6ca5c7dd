from __future__ import annotations

import re
from dataclasses import dataclass

from docketwatch.errors import InvalidInputError

_CASE_NUMBER = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<region>[A-Z]+)-(?P<year>\d{4})-(?P<sequence>\d+)$")


@dataclass(frozen=True, slots=True)
class CaseNumber:
    """Parsed ``PREFIX-REGION-YEAR-SEQUENCE`` label, e.g. ``CHR-VII-2024-001``."""

    prefix: str
    region: str
    year: int
    sequence: int

    def __str__(self) -> str:
        return format_case_number(self.prefix, self.region, self.year, self.sequence)


def parse_case_number(text: str) -> CaseNumber:
    match = _CASE_NUMBER.match(text.strip()) if text else None
    if match is None:
        raise InvalidInputError(
            f"Invalid case number {text!r}. Expected: PREFIX-REGION-YEAR-NUMBER"
        )
    return CaseNumber(
        prefix=match["prefix"],
        region=match["region"],
        year=int(match["year"]),
        sequence=int(match["sequence"]),
    )


def is_valid_case_number(text: str) -> bool:
    try:
        parse_case_number(text)
    except InvalidInputError:
        return False
    return True


def format_case_number(prefix: str, region: str, year: int, sequence: int) -> str:
    return f"{prefix.upper()}-{region.upper()}-{year:04d}-{sequence:03d}"
