"""
Calendar rule evaluation.

A calendar rule describes a recurring date, typically a public holiday:

    BASE[(+|-)DD][(+|-)WD]

- BASE: a fixed date "MM/DD" or "EASTER" (Gregorian Easter Sunday)
- (+|-)DD: day offset applied to the base date
- (+|-)WD: move to the first weekday WD (MO..SU) on or after (+),
  or on or before (-), the offset date

Examples: "01/01", "EASTER-02", "EASTER+39", "09/15+00+SU".

Evaluation is pure: no I/O, no clock access.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

MIN_YEAR = 1583
MAX_YEAR = 9999

WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_RULE_PATTERN = re.compile(
    r"""
    ^(?P<base>EASTER|(?P<month>\d{1,2})/(?P<day>\d{1,2}))
    (?P<offset>[+-]\d{1,3})?
    (?:(?P<direction>[+-])(?P<weekday>MO|TU|WE|TH|FR|SA|SU))?$
    """,
    re.VERBOSE | re.IGNORECASE,
)


class CalendarRuleError(ValueError):
    """Raised when a rule cannot be resolved for a year."""


@dataclass(frozen=True)
class CalendarRuleResult:
    """Outcome of validating a rule for one year."""

    rule: str
    year: int
    resolved_date: date | None = None
    error: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.resolved_date is not None

    @property
    def day_of_week(self) -> str | None:
        if self.resolved_date is None:
            return None
        return WEEKDAY_NAMES[self.resolved_date.weekday()]

    def to_dict(self) -> dict[str, Any]:
        if self.resolved_date is None:
            return {
                "IsValid": False,
                "Rule": self.rule,
                "Year": self.year,
                "Error": self.error,
            }
        return {
            "IsValid": True,
            "Rule": self.rule,
            "Year": self.year,
            "Date": self.resolved_date.isoformat(),
            "DayOfWeek": self.day_of_week,
        }


def easter_sunday(year: int) -> date:
    """
    Return Gregorian Easter Sunday for a year.

    Uses the anonymous Gregorian algorithm (Meeus/Jones/Butcher).
    """
    a = year % 19
    b, c = divmod(year, 100)
    d, e = divmod(b, 4)
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i, k = divmod(c, 4)
    l = (32 + 2 * e + 2 * i - h - k) % 7  # noqa: E741
    m = (a + 11 * h + 22 * l) // 451
    month, day = divmod(h + l - 7 * m + 114, 31)
    return date(year, month, day + 1)


def resolve_rule(rule: str, year: int) -> date:
    """
    Resolve a calendar rule to a concrete date.

    Args:
        rule: Rule string, e.g. "EASTER+39".
        year: Calendar year.

    Returns:
        The resolved date.

    Raises:
        CalendarRuleError: If the rule is malformed or does not exist in year.
    """
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise CalendarRuleError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}")

    text = rule.strip()
    match = _RULE_PATTERN.match(text)
    if match is None:
        raise CalendarRuleError(
            f"Cannot parse rule '{rule}': expected MM/DD or EASTER, "
            "optionally followed by +/-days and +/-weekday (e.g. 09/15+00+SU)"
        )

    if match.group("month") is None:
        resolved = easter_sunday(year)
    else:
        month, day = int(match.group("month")), int(match.group("day"))
        try:
            resolved = date(year, month, day)
        except ValueError as e:
            raise CalendarRuleError(
                f"Date {month:02d}/{day:02d} does not exist in {year}: {e}"
            ) from e

    try:
        if match.group("offset"):
            resolved += timedelta(days=int(match.group("offset")))

        if match.group("weekday"):
            target = WEEKDAY_CODES.index(match.group("weekday").upper())
            if match.group("direction") == "+":
                resolved += timedelta(days=(target - resolved.weekday()) % 7)
            else:
                resolved -= timedelta(days=(resolved.weekday() - target) % 7)
    except OverflowError as e:
        raise CalendarRuleError(f"Rule '{rule}' leaves the supported date range") from e

    return resolved


def validate_rule(rule: str, year: int) -> CalendarRuleResult:
    """
    Validate a rule for a year without raising.

    Returns:
        A valid result with the date, or an invalid one with an explanation.
    """
    try:
        return CalendarRuleResult(rule=rule, year=year, resolved_date=resolve_rule(rule, year))
    except CalendarRuleError as e:
        return CalendarRuleResult(rule=rule, year=year, error=str(e))
