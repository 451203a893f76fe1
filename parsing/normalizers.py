import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Generic, List, Optional, TypeVar

import dateparser

T = TypeVar("T")

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
MONTH_YEAR_RE = re.compile(r"^(\w{3})\s(\d{4})$")
YEAR_RE = re.compile(r"^\d{4}$")
DATEPARSER_SETTINGS = {"PREFER_DAY_OF_MONTH": "first", "RETURN_AS_TIMEZONE_AWARE": False}

SKILL_LEVELS = ((50, "Expert"), (20, "Advanced"), (5, "Intermediate"))


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """A parsed value, or the default it fell back to plus the reason why."""

    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_linkedin_date(raw: str) -> ParseResult[str]:
    """LinkedIn exports dates as "Jan 2020", "2020" or a full date."""
    if not raw:
        return ParseResult("", "empty")
    text = raw.strip()

    m = MONTH_YEAR_RE.match(text)
    if m:
        month = MONTHS.get(m.group(1).lower())
        if not month:
            return ParseResult("", f"unknown month in {raw!r}")
        try:
            return ParseResult(date(int(m.group(2)), month, 1).isoformat())
        except ValueError:
            return ParseResult("", f"year out of range in {raw!r}")

    if YEAR_RE.match(text):
        return ParseResult(f"{text}-01-01")

    try:
        dt = dateparser.parse(text, languages=["en"], settings=DATEPARSER_SETTINGS)
    except (ValueError, OverflowError):
        dt = None
    if not dt:
        return ParseResult("", f"unparseable date {raw!r}")
    return ParseResult(dt.date().isoformat())


def convert_linkedin_date(raw: str) -> str:
    return parse_linkedin_date(raw).value


def parse_endorsement_count(raw: Any) -> ParseResult[int]:
    if raw is None or raw == "":
        return ParseResult(0, "empty")
    try:
        return ParseResult(int(float(str(raw).replace(",", "").strip())))
    except (ValueError, OverflowError):
        return ParseResult(0, f"not a number: {raw!r}")


def estimate_skill_level(endorsement_count: int) -> str:
    for threshold, level in SKILL_LEVELS:
        if endorsement_count >= threshold:
            return level
    return "Beginner"


def safe_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return str(value)


def safe_list(value: Any) -> List[Any]:
    if isinstance(value, list):
        return value
    if value is None:
        return []
    return [value]
