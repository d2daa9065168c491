"""Holiday Resolver tests — subscription filtering, weekend observance, lieu credits."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from leave_planner.common.constants import HolidayWeekendRule
from leave_planner.common.dates import next_weekday
from leave_planner.holidays.service import (
    HolidayService,
    count_lieu_credits,
    resolve_holidays,
)
from tests.conftest import _make_config, _make_holiday, _make_user


# ═════════════════════════════════════════════════════════════════════
# 1. resolve_holidays
# ═════════════════════════════════════════════════════════════════════


class TestResolveHolidays:
    """Actual / observed maps produced for a user."""

    def test_weekday_holiday_not_shifted(self):
        """2024-12-25 is a Wednesday → no observed entry under the monday rule."""
        config = _make_config(2024, [_make_holiday(date(2024, 12, 25), "Christmas")])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)

        actual, observed = resolve_holidays([config], user, 2024)

        assert actual == {date(2024, 12, 25): ["Christmas"]}
        assert observed == {}

    def test_sunday_holiday_observed_next_year(self):
        """2023-12-31 (Sunday) → observed on Monday 2024-01-01."""
        config = _make_config(2023, [_make_holiday(date(2023, 12, 31), "New Year's Eve")])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)

        actual, observed = resolve_holidays([config], user, 2023)

        assert date(2023, 12, 31) in actual
        assert observed == {date(2024, 1, 1): ["New Year's Eve (Observed)"]}

    def test_saturday_holiday_moves_to_monday(self):
        """2022-01-01 (Saturday) → observed Monday 2022-01-03."""
        config = _make_config(2022, [_make_holiday(date(2022, 1, 1), "New Year")])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)

        resolved = resolve_holidays([config], user, 2022)

        assert list(resolved.observed) == [date(2022, 1, 3)]
        assert resolved.non_working_dates() == {date(2022, 1, 1), date(2022, 1, 3)}

    def test_lieu_rule_does_not_shift_calendar(self):
        config = _make_config(2022, [_make_holiday(date(2022, 1, 1), "New Year")])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.lieu)

        _, observed = resolve_holidays([config], user, 2022)

        assert observed == {}

    def test_excluded_holidays_and_unsubscribed_configs_ignored(self):
        mine = _make_config(2024, [
            _make_holiday(date(2024, 12, 25), "Christmas"),
            _make_holiday(date(2024, 12, 26), "Boxing Day", is_included=False),
        ], id="mine")
        other = _make_config(2024, [_make_holiday(date(2024, 7, 4), "Other")], id="other")
        user = _make_user(config_ids=["mine"])

        actual, _ = resolve_holidays([mine, other], user, 2024)

        assert list(actual) == [date(2024, 12, 25)]

    def test_two_holidays_same_date_keep_both_names(self):
        a = _make_config(2024, [_make_holiday(date(2024, 12, 25), "Christmas")], id="a")
        b = _make_config(2024, [_make_holiday(date(2024, 12, 25), "Noël", id="b-1")], id="b")
        user = _make_user(config_ids=["a", "b"])

        actual, _ = resolve_holidays([a, b], user, 2024)

        assert actual[date(2024, 12, 25)] == ["Christmas", "Noël"]

    def test_year_none_resolves_every_year(self):
        c23 = _make_config(2023, [_make_holiday(date(2023, 12, 25))], id="c23")
        c24 = _make_config(2024, [_make_holiday(date(2024, 12, 25))], id="c24")
        user = _make_user(config_ids=["c23", "c24"])

        actual, _ = resolve_holidays([c23, c24], user)

        assert set(actual) == {date(2023, 12, 25), date(2024, 12, 25)}

    def test_resolver_is_pure(self):
        config = _make_config(2023, [_make_holiday(date(2023, 12, 31))])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)

        first = resolve_holidays([config], user, 2023)
        second = resolve_holidays([config], user, 2023)

        assert first == second
        assert len(config.holidays) == 1


# ═════════════════════════════════════════════════════════════════════
# 2. Lieu credits / helpers
# ═════════════════════════════════════════════════════════════════════


class TestLieuCredits:
    """One lieu day per included weekend holiday under the lieu rule."""

    def _config(self):
        return _make_config(2024, [
            _make_holiday(date(2024, 6, 1), "Saturday Fest"),     # Saturday
            _make_holiday(date(2024, 9, 1), "Sunday Fest"),       # Sunday
            _make_holiday(date(2024, 12, 25), "Christmas"),       # Wednesday
            _make_holiday(date(2024, 12, 28), "Skipped", is_included=False),  # Saturday
        ])

    def test_counts_included_weekend_holidays(self):
        config = self._config()
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.lieu)
        assert count_lieu_credits([config], user, 2024) == Decimal("2")

    def test_no_credits_without_lieu_rule(self):
        config = self._config()
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)
        assert count_lieu_credits([config], user, 2024) == Decimal("0")

    def test_other_year_earns_nothing(self):
        config = self._config()
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.lieu)
        assert count_lieu_credits([config], user, 2025) == Decimal("0")


class TestHolidayModels:

    def test_custom_holiday_flag(self):
        assert _make_holiday(date(2024, 3, 4), id="custom-1712").is_custom
        assert not _make_holiday(date(2024, 3, 4), id="nag-XX-2024-0").is_custom

    def test_is_weekend_precomputed(self):
        assert _make_holiday(date(2024, 6, 1)).is_weekend is True
        assert _make_holiday(date(2024, 6, 3)).is_weekend is False

    def test_config_claims_its_holidays(self):
        config = _make_config(2024, [_make_holiday(date(2024, 12, 25))], id="XX-2024")
        assert config.holidays[0].config_id == "XX-2024"

    def test_next_weekday(self):
        assert next_weekday(date(2024, 6, 1)) == date(2024, 6, 3)
        assert next_weekday(date(2024, 6, 2)) == date(2024, 6, 3)
        assert next_weekday(date(2024, 6, 4)) == date(2024, 6, 4)


# ═════════════════════════════════════════════════════════════════════
# 3. HolidayService / API
# ═════════════════════════════════════════════════════════════════════


class TestHolidayCalendar:

    def test_calendar_sorted_with_observed(self):
        config = _make_config(2022, [
            _make_holiday(date(2022, 12, 25), "Christmas"),   # Sunday
            _make_holiday(date(2022, 1, 1), "New Year"),      # Saturday
        ])
        user = _make_user(config_ids=[config.id], rule=HolidayWeekendRule.monday)

        out = HolidayService.get_calendar([config], user, 2022)

        assert [d.date for d in out.actual] == [date(2022, 1, 1), date(2022, 12, 25)]
        assert [d.date for d in out.observed] == [date(2022, 1, 3), date(2022, 12, 26)]
        assert out.observed[1].names == ["Christmas (Observed)"]

    async def test_resolve_endpoint(self, client):
        payload = {
            "year": 2023,
            "user": {
                "id": "u1",
                "holiday_config_ids": ["XX-2023"],
                "holiday_weekend_rule": "monday",
            },
            "configs": [{
                "id": "XX-2023",
                "year": 2023,
                "holidays": [
                    {"id": "h1", "name": "New Year's Eve", "date": "2023-12-31"},
                ],
            }],
        }
        resp = await client.post("/api/v1/holidays/resolve", json=payload)

        assert resp.status_code == 200
        body = resp.json()
        assert body["actual"] == [{"date": "2023-12-31", "names": ["New Year's Eve"]}]
        assert body["observed"] == [{"date": "2024-01-01", "names": ["New Year's Eve (Observed)"]}]

    async def test_resolve_endpoint_rejects_bad_date(self, client):
        payload = {
            "year": 2023,
            "user": {"id": "u1"},
            "configs": [{
                "id": "XX-2023",
                "year": 2023,
                "holidays": [{"id": "h1", "name": "Bad", "date": "2023-13-45"}],
            }],
        }
        resp = await client.post("/api/v1/holidays/resolve", json=payload)

        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith("application/problem+json")
