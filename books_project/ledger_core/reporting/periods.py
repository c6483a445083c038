from dataclasses import dataclass
from datetime import date, timedelta

MONTHLY = "monthly"
QUARTERLY = "quarterly"
SUMMARY = "summary"

GRANULARITIES = (SUMMARY, MONTHLY, QUARTERLY)


@dataclass(frozen=True)
class Period:
    start_date: date
    end_date: date
    label: str

    def contains(self, day):
        return self.start_date <= day <= self.end_date


def _first_of_next_month(day):
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def _first_of_next_quarter(day):
    quarter_start_month = 3 * ((day.month - 1) // 3) + 1
    month = quarter_start_month + 3
    if month > 12:
        return date(day.year + 1, month - 12, 1)
    return date(day.year, month, 1)


def get_periods(start, end, granularity):
    """
    Split [start, end] into calendar-aligned periods.

    The first period starts at ``start`` (not the start of its month) and
    the last is clipped to ``end``, so the periods partition the range
    exactly. "summary" returns the whole range as one period.
    """
    if start > end:
        return []
    if granularity == SUMMARY:
        return [Period(start, end, f"{start:%b %d, %Y} - {end:%b %d, %Y}")]
    if granularity == MONTHLY:
        next_start = _first_of_next_month
    elif granularity == QUARTERLY:
        next_start = _first_of_next_quarter
    else:
        raise ValueError(f"Unknown granularity: {granularity!r}")

    periods = []
    current = start
    while current <= end:
        boundary = next_start(current)
        period_end = min(boundary - timedelta(days=1), end)
        if granularity == MONTHLY:
            label = f"{current:%b %Y}"
        else:
            label = f"Q{(current.month - 1) // 3 + 1} {current.year}"
        periods.append(Period(current, period_end, label))
        current = boundary
    return periods
