"""Pure reducers used by the license, equipment and dashboard aggregates."""

import calendar
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel

EXPIRY_MONTHS = 6


class ChartEntry(BaseModel):
    name: str
    value: int
    percentage: Optional[int] = None


class MonthlyExpiry(BaseModel):
    year: int
    month: int
    label: str
    count: int


def percentage(count: int, total: int) -> Optional[int]:
    if total <= 0:
        return None
    # half-up, the way dashboards round
    return int(math.floor(100 * count / total + 0.5))


def count_by(rows: Iterable[Dict[str, Any]], field: str, categories: Sequence[str] = ()) -> Dict[str, int]:
    counts = {category: 0 for category in categories}
    for row in rows:
        key = row.get(field) or "unknown"
        counts[key] = counts.get(key, 0) + 1
    return counts


def chart_entries(counts: Dict[str, int], total: int) -> List[ChartEntry]:
    return [
        ChartEntry(name=name, value=count, percentage=percentage(count, total))
        for name, count in counts.items()
        if count > 0
    ]


def parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def month_buckets(today: date, months: int = EXPIRY_MONTHS) -> List[tuple]:
    buckets = []
    for i in range(months):
        index = today.month - 1 + i
        buckets.append((today.year + index // 12, index % 12 + 1))
    return buckets


def monthly_expiry(rows: Iterable[Dict[str, Any]], today: date, field: str = "expiry_date") -> List[MonthlyExpiry]:
    buckets = month_buckets(today)
    counts = {bucket: 0 for bucket in buckets}
    for row in rows:
        expiry = parse_date(row.get(field))
        if expiry is None:
            continue
        bucket = (expiry.year, expiry.month)
        if bucket in counts:
            counts[bucket] += 1
    return [
        MonthlyExpiry(year=year, month=month, label=f"{calendar.month_abbr[month]} {year}", count=counts[(year, month)])
        for year, month in buckets
    ]
