"""Billing period helpers.

A period is a calendar month written as ``YYYY-MM``.
"""

from __future__ import annotations

import re
from datetime import date

from dateutil.relativedelta import relativedelta

from condobill.core.errors import InvalidInputError

_PERIOD_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_period(period: str) -> date:
    """Returns the first day of the month named by ``period``."""
    match = _PERIOD_RE.match(period or "")
    if not match:
        raise InvalidInputError(f"Invalid period {period!r}, expected YYYY-MM.")
    return date(int(match.group(1)), int(match.group(2)), 1)


def format_period(period_date: date) -> str:
    return period_date.strftime("%Y-%m")


def previous_period(period: str) -> str:
    return format_period(parse_period(period) - relativedelta(months=1))


def next_period(period: str) -> str:
    return format_period(parse_period(period) + relativedelta(months=1))


def period_bounds(period: str) -> tuple[date, date]:
    """Returns the first and the last day of the period."""
    start = parse_period(period)
    end = start + relativedelta(months=1) - relativedelta(days=1)
    return start, end


def is_future_period(period: str, today: date | None = None) -> bool:
    """True when the period starts after the current month."""
    today = today or date.today()
    return parse_period(period) > today.replace(day=1)


def format_period_for_display(period: str) -> str:
    """Formats a period as 'Tháng MM/YYYY'."""
    start = parse_period(period)
    return f"Tháng {start.month:02d}/{start.year}"
