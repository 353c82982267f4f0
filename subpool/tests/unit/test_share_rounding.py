"""
tests/unit/test_share_rounding.py — billing_service.compute_share_amount and
the month-key helpers.

What this file proves:
  - Every participant's share is ceil(total / n), computed with integers only
  - n * share covers the bill and overshoots by less than n units
  - Month keys are YYYY-MM with month 01–12, ordered chronologically

No database, no Flask.
"""

from __future__ import annotations

import pytest

from subpool.app.errors import AppError, ErrorCode
from subpool.app.services.billing_service import (
    compute_share_amount,
    month_sort_key,
    parse_month,
)


# ── compute_share_amount ───────────────────────────────────────────────────

def test_even_split():
    assert compute_share_amount(100, 2) == 50


def test_uneven_split_rounds_up():
    assert compute_share_amount(101, 3) == 34


def test_single_participant_pays_everything():
    assert compute_share_amount(16626, 1) == 16626


def test_total_smaller_than_count():
    assert compute_share_amount(1, 6) == 1


@pytest.mark.parametrize("total", [1, 2, 7, 99, 100, 101, 12666, 20745, 999_999])
@pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 6, 7])
def test_shares_cover_the_bill_with_bounded_overshoot(total, count):
    share = compute_share_amount(total, count)

    assert isinstance(share, int)
    assert share * count >= total
    assert share * count - total < count
    # Smallest share that still covers the bill.
    assert (share - 1) * count < total


def test_zero_participants_is_a_programming_error():
    with pytest.raises(ValueError):
        compute_share_amount(100, 0)


# ── parse_month / month_sort_key ───────────────────────────────────────────

def test_parse_month_returns_year_and_month():
    assert parse_month("2025-03") == (2025, 3)
    assert parse_month("1999-12") == (1999, 12)


@pytest.mark.parametrize(
    "bad", ["2025-13", "2025-00", "2025-3", "25-03", "2025/03", "", None, "2025-03\n"],
)
def test_parse_month_rejects_bad_keys(bad):
    with pytest.raises(AppError) as exc_info:
        parse_month(bad)

    err = exc_info.value
    assert err.code == ErrorCode.INVALID_MONTH
    assert err.http_status == 400
    assert err.field == "month"


def test_month_sort_key_is_chronological_across_years():
    months = ["2025-01", "2024-12", "2025-10", "2025-02"]

    assert sorted(months, key=month_sort_key) == ["2024-12", "2025-01", "2025-02", "2025-10"]
