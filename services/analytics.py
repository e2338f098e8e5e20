"""
Analytics service - aggregates lead records into dashboard statistics.

compute_stats is a pure function of (records, date range, now): every
group-by is a single pass over the records, and no malformed field can make
it raise (bad values are skipped, zeroed or put in the Unknown bucket).
"""
from collections import Counter
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from config import STATUS_CONTACTED, UNKNOWN_BUCKET
from utils.time_utils import (
    DateRange,
    date_in_range,
    format_local_ymd,
    iter_days,
    now_local,
)
from utils.validation import (
    bucket_name,
    field_text,
    is_not_qualified,
    is_qualified,
    parse_amount,
    parse_hour,
)

HOURS_PER_DAY = 24


def rate(part: int, total: int) -> float:
    """Percentage of part in total, 0 when total is 0."""
    if not total:
        return 0.0
    return round(part / total * 100, 2)


def filter_by_range(records: Iterable[Dict], date_range: Optional[DateRange]) -> List[Dict]:
    """Records whose Registered_Date falls in the range."""
    return [
        record for record in records
        if date_in_range(field_text(record, "Registered_Date"), date_range)
    ]


def _daily_series(
    by_date: Dict[str, Dict[str, int]], date_range: Optional[DateRange]
) -> List[Dict]:
    """Zero-filled over a bounded range, otherwise only the dates present."""
    if date_range is not None and date_range.is_bounded:
        dates = [format_local_ymd(day) for day in iter_days(date_range.start, date_range.end)]
    else:
        dates = sorted(by_date)

    series = []
    for day in dates:
        bucket = by_date.get(day, {"qualified": 0, "not_qualified": 0, "leads": 0})
        series.append({
            "date": day,
            "qualified": bucket["qualified"],
            "not_qualified": bucket["not_qualified"],
            "leads": bucket["leads"],
        })
    return series


def _country_matrix(by_country: Dict[str, Dict[str, int]]) -> List[Dict]:
    rows = [
        {
            "country": country,
            "total": counts["total"],
            "qualified": counts["qualified"],
            "not_qualified": counts["not_qualified"],
            "success_rate": rate(counts["qualified"], counts["total"]),
        }
        for country, counts in by_country.items()
    ]
    # Ties keep first-occurrence order
    return sorted(rows, key=lambda row: row["total"], reverse=True)


def compute_stats(
    records: Iterable[Dict],
    date_range: Optional[DateRange] = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Aggregate lead records into the dashboard statistics.

    Range-scoped figures use the records whose Registered_Date matches
    date_range. "today" and "this_month" always use the full record set and
    the local date of `now`.
    """
    records = list(records)
    if now is None:
        now = now_local()

    today_str = format_local_ymd(now)
    month_prefix = today_str[:7]
    today = 0
    this_month = 0
    for record in records:
        registered = field_text(record, "Registered_Date")
        if registered == today_str:
            today += 1
        if registered[:7] == month_prefix:
            this_month += 1

    filtered = filter_by_range(records, date_range)

    qualified = 0
    not_qualified = 0
    contacted = 0
    cash_collected = 0.0
    status_counts: Dict[str, int] = {}
    hourly = [0] * HOURS_PER_DAY
    by_date: Dict[str, Dict[str, int]] = {}
    by_country: Dict[str, Dict[str, int]] = {}
    interests = Counter()

    for record in filtered:
        record_qualified = is_qualified(record.get("Qualifies"))
        record_not_qualified = is_not_qualified(record.get("Qualifies"))
        status = field_text(record, "Status")

        if record_qualified:
            qualified += 1
        elif record_not_qualified:
            not_qualified += 1
        if status == STATUS_CONTACTED:
            contacted += 1
        cash_collected += parse_amount(record.get("Cash_Collected"))

        status_key = bucket_name(status)
        status_counts[status_key] = status_counts.get(status_key, 0) + 1

        hour = parse_hour(record.get("Registered_Time"))
        if hour is not None:
            hourly[hour] += 1

        day = field_text(record, "Registered_Date")
        if day:
            bucket = by_date.setdefault(day, {"qualified": 0, "not_qualified": 0, "leads": 0})
            bucket["leads"] += 1
            if record_qualified:
                bucket["qualified"] += 1
            elif record_not_qualified:
                bucket["not_qualified"] += 1

        country = by_country.setdefault(
            bucket_name(record.get("Country")),
            {"total": 0, "qualified": 0, "not_qualified": 0},
        )
        country["total"] += 1
        if record_qualified:
            country["qualified"] += 1
        elif record_not_qualified:
            country["not_qualified"] += 1

        interests[bucket_name(record.get("Interest"))] += 1

    total = len(filtered)
    country_matrix = _country_matrix(by_country)

    return {
        "total": total,
        "today": today,
        "this_month": this_month,
        "qualified": qualified,
        "not_qualified": not_qualified,
        "contacted": contacted,
        "contact_rate": rate(contacted, total),
        "cash_collected": round(cash_collected, 2),
        "status_data": [
            {"name": name, "value": count} for name, count in status_counts.items()
        ],
        "interest_data": [
            {"name": name, "value": count} for name, count in interests.items()
        ],
        "hourly_data": [
            {"hour": f"{hour}:00", "count": count} for hour, count in enumerate(hourly)
        ],
        "daily_data": _daily_series(by_date, date_range),
        "country_matrix": country_matrix,
        "top_country": country_matrix[0]["country"] if country_matrix else "N/A",
        "top_interest": next(
            (name for name, _ in interests.most_common() if name != UNKNOWN_BUCKET), "N/A"
        ),
    }


class AnalyticsService:
    """Computes dashboard statistics over the cached lead list."""

    def __init__(self, lead_cache):
        self.lead_cache = lead_cache

    async def get_stats(self, date_range: Optional[DateRange] = None) -> Dict:
        leads = await self.lead_cache.get_leads()
        return compute_stats(leads, date_range)
