"""Tests for the lead statistics aggregation."""

from datetime import date, datetime

import pytest
import pytz

from services.analytics import compute_stats, filter_by_range, rate
from utils import time_utils
from utils.time_utils import DateRange

NOW = datetime(2024, 5, 15, 12, 0)


@pytest.fixture(autouse=True)
def madrid_timezone(monkeypatch):
    monkeypatch.setattr(time_utils, "TIMEZONE", "Europe/Madrid")


def make_lead(day, qualifies="", status="", country="", time="", cash=None, interest=""):
    return {
        "Registered_Date": day,
        "Registered_Time": time,
        "Qualifies": qualifies,
        "Status": status,
        "Country": country,
        "Cash_Collected": cash,
        "Interest": interest,
    }


class TestRangeFiltering:
    def test_no_range_includes_every_record(self, leads):
        stats = compute_stats(leads, DateRange(), now=NOW)
        assert stats["total"] == len(leads)
        assert sum(row["total"] for row in stats["country_matrix"]) == len(leads)
        assert sum(entry["value"] for entry in stats["status_data"]) == len(leads)

    def test_none_range_behaves_like_empty_range(self, leads):
        assert compute_stats(leads, None, now=NOW) == compute_stats(leads, DateRange(), now=NOW)

    def test_single_day_is_exact_match(self, leads):
        stats = compute_stats(leads, DateRange(date(2024, 5, 14)), now=NOW)
        assert stats["total"] == 2
        assert [row["date"] for row in stats["daily_data"]] == ["2024-05-14"]

    def test_bounded_range_is_inclusive(self, leads):
        filtered = filter_by_range(leads, DateRange(date(2024, 5, 15), date(2024, 5, 16)))
        assert [lead["ID"] for lead in filtered] == ["L-3", "L-4"]

    def test_aware_endpoint_uses_local_calendar_day(self):
        records = [make_lead("2024-05-14"), make_lead("2024-05-15")]
        # 23:30 UTC on the 14th is already the 15th in Madrid
        start = pytz.UTC.localize(datetime(2024, 5, 14, 23, 30))
        stats = compute_stats(records, DateRange(start), now=NOW)
        assert stats["total"] == 1
        assert stats["daily_data"][0]["date"] == "2024-05-15"

    def test_records_without_date_only_pass_when_unfiltered(self):
        records = [make_lead(""), make_lead("2024-05-14")]
        assert compute_stats(records, now=NOW)["total"] == 2
        assert compute_stats(records, DateRange(date(2024, 5, 14)), now=NOW)["total"] == 1


class TestCounts:
    def test_example_from_two_day_range(self):
        records = [
            make_lead("2024-05-14", qualifies="si"),
            make_lead("2024-05-14", qualifies="no"),
            make_lead("2024-05-15", qualifies="si"),
        ]
        stats = compute_stats(records, DateRange(date(2024, 5, 14), date(2024, 5, 15)), now=NOW)

        assert stats["qualified"] == 2
        assert stats["not_qualified"] == 1
        assert stats["daily_data"] == [
            {"date": "2024-05-14", "qualified": 1, "not_qualified": 1, "leads": 2},
            {"date": "2024-05-15", "qualified": 1, "not_qualified": 0, "leads": 1},
        ]

    def test_qualifies_is_trimmed_and_case_folded(self):
        records = [
            make_lead("2024-05-14", qualifies=" SI "),
            make_lead("2024-05-14", qualifies="No"),
            make_lead("2024-05-14", qualifies="quizás"),
            make_lead("2024-05-14", qualifies=None),
        ]
        stats = compute_stats(records, now=NOW)
        assert stats["qualified"] == 1
        assert stats["not_qualified"] == 1
        assert stats["total"] == 4

    def test_contact_rate(self, leads):
        stats = compute_stats(leads, now=NOW)
        assert stats["contacted"] == 1
        assert stats["contact_rate"] == 25.0

    def test_cash_collected_ignores_invalid_amounts(self, leads):
        # "1500" + "" + "300,50" + "n/a"
        assert compute_stats(leads, now=NOW)["cash_collected"] == 1800.5

    def test_cash_collected_accepts_numbers(self):
        records = [make_lead("2024-05-14", cash=200), make_lead("2024-05-14", cash=12.5)]
        assert compute_stats(records, now=NOW)["cash_collected"] == 212.5

    def test_today_and_month_ignore_the_selected_range(self, leads):
        stats = compute_stats(leads, DateRange(date(2024, 5, 16)), now=NOW)
        assert stats["total"] == 1
        assert stats["today"] == 1
        assert stats["this_month"] == 4

    def test_today_uses_local_date_of_now(self, leads):
        # 22:30 UTC on the 14th is the 15th in Madrid
        now = pytz.UTC.localize(datetime(2024, 5, 14, 22, 30))
        assert compute_stats(leads, now=now)["today"] == 1

    def test_top_country_and_interest(self, leads):
        stats = compute_stats(leads, now=NOW)
        assert stats["top_country"] == "España"
        assert stats["top_interest"] == "Setter High Ticket"

    def test_interest_distribution(self, leads):
        leads.append(make_lead("2024-05-16", interest="  "))
        stats = compute_stats(leads, now=NOW)
        assert stats["interest_data"] == [
            {"name": "Setter High Ticket", "value": 2},
            {"name": "Cerrador de Ventas", "value": 2},
            {"name": "Unknown", "value": 1},
        ]
        assert sum(entry["value"] for entry in stats["interest_data"]) == stats["total"]

    def test_top_interest_skips_blank_interests(self):
        records = [
            make_lead("2024-05-14"),
            make_lead("2024-05-14"),
            make_lead("2024-05-14", interest="Closer"),
        ]
        stats = compute_stats(records, now=NOW)
        assert stats["interest_data"][0] == {"name": "Unknown", "value": 2}
        assert stats["top_interest"] == "Closer"

    def test_rates_stay_within_bounds(self, leads):
        stats = compute_stats(leads, now=NOW)
        assert 0 <= stats["contact_rate"] <= 100
        for row in stats["country_matrix"]:
            assert 0 <= row["success_rate"] <= 100

    def test_rate_with_zero_denominator(self):
        assert rate(0, 0) == 0
        assert rate(3, 0) == 0


class TestHistograms:
    def test_status_histogram_keeps_first_occurrence_order(self, leads):
        stats = compute_stats(leads, now=NOW)
        assert stats["status_data"] == [
            {"name": "Contactado", "value": 1},
            {"name": "Formulario completo", "value": 2},
            {"name": "Unknown", "value": 1},
        ]

    def test_unknown_status_values_get_their_own_bucket(self):
        records = [make_lead("2024-05-14", status="Reagendado")]
        assert compute_stats(records, now=NOW)["status_data"] == [{"name": "Reagendado", "value": 1}]

    def test_hourly_histogram_has_24_buckets(self, leads):
        hourly = compute_stats(leads, now=NOW)["hourly_data"]
        assert len(hourly) == 24
        assert hourly[0] == {"hour": "0:00", "count": 0}
        assert hourly[9]["count"] == 1
        assert hourly[14]["count"] == 1
        # one lead has no registration time
        assert sum(entry["count"] for entry in hourly) == len(leads) - 1

    def test_invalid_hours_are_skipped(self):
        records = [
            make_lead("2024-05-14", time="25:00"),
            make_lead("2024-05-14", time="ab:10"),
            make_lead("2024-05-14", time="-1:00"),
            make_lead("2024-05-14", time="23:59:59"),
            make_lead("2024-05-14", time="7"),
            make_lead("2024-05-14", time="²:00"),
            make_lead("2024-05-14", time="١٢:00"),
        ]
        hourly = compute_stats(records, now=NOW)["hourly_data"]
        assert hourly[23]["count"] == 1
        assert hourly[7]["count"] == 1
        assert sum(entry["count"] for entry in hourly) == 2


class TestDailySeries:
    def test_bounded_range_is_zero_filled(self, leads):
        date_range = DateRange(date(2024, 5, 10), date(2024, 5, 16))
        series = compute_stats(leads, date_range, now=NOW)["daily_data"]

        assert len(series) == 7
        dates = [entry["date"] for entry in series]
        assert dates == sorted(set(dates))
        assert series[0] == {"date": "2024-05-10", "qualified": 0, "not_qualified": 0, "leads": 0}
        assert series[4] == {"date": "2024-05-14", "qualified": 1, "not_qualified": 1, "leads": 2}

    def test_bounded_range_crossing_month_end(self):
        date_range = DateRange(date(2024, 2, 27), date(2024, 3, 2))
        series = compute_stats([], date_range, now=NOW)["daily_data"]
        assert [entry["date"] for entry in series] == [
            "2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01", "2024-03-02",
        ]

    def test_datetime_endpoints_cover_whole_days(self):
        date_range = DateRange(datetime(2024, 5, 14, 18, 0), datetime(2024, 5, 15, 6, 0))
        series = compute_stats([make_lead("2024-05-15")], date_range, now=NOW)["daily_data"]
        assert [entry["date"] for entry in series] == ["2024-05-14", "2024-05-15"]

    def test_unbounded_series_lists_present_dates_sorted(self, leads):
        leads.reverse()
        series = compute_stats(leads, now=NOW)["daily_data"]
        assert [entry["date"] for entry in series] == ["2024-05-14", "2024-05-15", "2024-05-16"]


class TestCountryMatrix:
    def test_sorted_by_volume_with_unknown_bucket(self, leads):
        matrix = compute_stats(leads, now=NOW)["country_matrix"]
        assert matrix[0] == {
            "country": "España",
            "total": 2,
            "qualified": 1,
            "not_qualified": 1,
            "success_rate": 50.0,
        }
        assert [row["country"] for row in matrix[1:]] == ["Colombia", "Unknown"]

    def test_ties_keep_first_occurrence_order(self):
        records = [
            make_lead("2024-05-14", country="Perú"),
            make_lead("2024-05-14", country="Chile"),
            make_lead("2024-05-14", country="México"),
            make_lead("2024-05-14", country="Chile"),
        ]
        matrix = compute_stats(records, now=NOW)["country_matrix"]
        assert [row["country"] for row in matrix] == ["Chile", "Perú", "México"]

    def test_repeated_calls_are_identical(self, leads):
        assert compute_stats(leads, now=NOW) == compute_stats(leads, now=NOW)


class TestDegradedInput:
    def test_empty_records(self):
        for date_range in (DateRange(), DateRange(date(2024, 5, 14))):
            stats = compute_stats([], date_range, now=NOW)
            assert stats["total"] == 0
            assert stats["contact_rate"] == 0
            assert stats["country_matrix"] == []
            assert stats["status_data"] == []
            assert stats["interest_data"] == []
            assert stats["top_interest"] == "N/A"
            assert stats["daily_data"] == []
            assert stats["hourly_data"] == [{"hour": f"{h}:00", "count": 0} for h in range(24)]
            assert stats["top_country"] == "N/A"

    def test_malformed_fields_do_not_raise(self):
        records = [
            {"Registered_Date": 20240514, "Registered_Time": 9, "Cash_Collected": "∞"},
            {"Registered_Date": None, "Qualifies": 1, "Country": None, "Status": None},
            {"Registered_Date": "2024-05-14", "Registered_Time": "²:00", "Cash_Collected": 10 ** 400},
            {},
        ]
        stats = compute_stats(records, DateRange(date(2024, 5, 14), date(2024, 5, 15)), now=NOW)
        assert stats["total"] == 1
        assert len(stats["daily_data"]) == 2
        assert sum(entry["count"] for entry in stats["hourly_data"]) == 0

        stats = compute_stats(records, now=NOW)
        assert stats["total"] == 4
        assert stats["cash_collected"] == 0
        assert stats["country_matrix"] == [
            {"country": "Unknown", "total": 4, "qualified": 0, "not_qualified": 0, "success_rate": 0.0}
        ]

    def test_input_records_are_not_mutated(self, leads):
        snapshot = [dict(lead) for lead in leads]
        compute_stats(leads, DateRange(date(2024, 5, 14), date(2024, 5, 16)), now=NOW)
        assert leads == snapshot
