# gendata/utils/dates.py
from datetime import date, timedelta
from typing import Iterator

DATE_FMT = "%Y-%m-%d"


def iso_day(d: date) -> str:
    return d.strftime(DATE_FMT)


def day_range(start: date, days: int) -> Iterator[date]:
    """
    Yield `days` consecutive calendar days beginning at start.
    """
    for offset in range(days):
        yield start + timedelta(days=offset)
