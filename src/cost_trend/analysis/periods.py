"""
Period key handling.

Period keys are the start stamps of granularity buckets as returned by the
billing API: ``YYYY-MM-DD`` for daily and monthly data, ISO timestamps for
hourly data. Both sort chronologically as plain strings.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from ..providers.base import TimeGranularity

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
HOURLY_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
DEFAULT_RECENT_WINDOW_DAYS = 180


def format_period(moment: date | datetime, granularity: TimeGranularity) -> str:
    """Render a date or datetime as the period key of the given granularity."""
    if granularity == TimeGranularity.HOURLY:
        if not isinstance(moment, datetime):
            moment = datetime.combine(moment, datetime.min.time())
        return moment.strftime(HOURLY_FORMAT)
    if isinstance(moment, datetime):
        moment = moment.date()
    return moment.strftime(DATE_FORMAT)


def normalize_period(raw: str) -> str:
    """
    Normalize a raw period key.

    Timestamps carrying an explicit UTC offset are rewritten to the ``Z`` form
    so every hourly key of a run shares one format.
    """
    period = raw.strip()
    if "T" in period and period.endswith("+00:00"):
        period = period[: -len("+00:00")] + "Z"
    return period


def period_date(period: str) -> date | None:
    """Calendar date of a period key, or None when it does not parse."""
    try:
        return datetime.strptime(period[:10], DATE_FORMAT).date()
    except ValueError:
        return None


def recent_window_start(end_date: date, window_days: int = DEFAULT_RECENT_WINDOW_DAYS) -> date:
    """First calendar date inside the trailing window that ends at ``end_date``."""
    return end_date - timedelta(days=window_days)


def is_in_recent_window(
    period: str, end_date: date, window_days: int = DEFAULT_RECENT_WINDOW_DAYS
) -> bool:
    """Whether a period falls on or after the start of the recent window."""
    parsed = period_date(period)
    if parsed is None:
        logger.debug(f"Period {period!r} has no parseable date, excluded from recent window")
        return False
    return parsed >= recent_window_start(end_date, window_days)


def filter_recent_periods(
    periods: Iterable[str], end_date: date, window_days: int = DEFAULT_RECENT_WINDOW_DAYS
) -> list[str]:
    """Keep the periods inside the recent window, preserving their order."""
    return [p for p in periods if is_in_recent_window(p, end_date, window_days)]


def sort_periods(periods: Iterable[str]) -> list[str]:
    """De-duplicate and sort period keys chronologically."""
    return sorted(set(periods))
