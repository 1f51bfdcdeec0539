"""Mini README: Tests covering the pure financial aggregation helpers.

Structure:
    * compute_summary checks - empty input, the worked scenario, random lists.
    * compute_goal_progress checks - halfway, overshoot clamping, no goal.
    * rejection checks - negative, zero and NaN amounts never enter a total.
"""

from __future__ import annotations

import random
from decimal import Decimal
from types import SimpleNamespace

import pytest

from festivalfund.aggregation import (
    EMPTY_SUMMARY,
    balance_status,
    compute_goal_progress,
    compute_summary,
    describe_goal,
    remaining_to_goal,
)
from festivalfund.errors import ValidationError

from factories import make_donation, make_expense


def test_empty_lists_give_zero_summary() -> None:
    """No records means zero totals and zero counts."""

    summary = compute_summary([], [])

    assert summary == EMPTY_SUMMARY
    assert summary.total_donations == Decimal("0")
    assert summary.remaining_balance == Decimal("0")
    assert summary.donation_count == 0
    assert summary.expense_count == 0


def test_worked_scenario_totals_and_goal() -> None:
    """Donations of 500 and 1000 against a 300 expense and a 2000 goal."""

    donations = [make_donation("500"), make_donation("1000", is_anonymous=True)]
    expenses = [make_expense("300")]

    summary = compute_summary(donations, expenses)

    assert summary.total_donations == Decimal("1500.00")
    assert summary.total_expenses == Decimal("300.00")
    assert summary.remaining_balance == Decimal("1200.00")
    assert summary.donation_count == 2
    assert summary.expense_count == 1
    assert compute_goal_progress(summary.total_donations, Decimal("2000")) == 75.0
    assert remaining_to_goal(summary.total_donations, Decimal("2000")) == Decimal("500.00")
    assert summary.as_dict()["remaining_balance"] == "1200.00"


def test_summary_matches_independent_sums_for_random_lists() -> None:
    """Totals equal plain sums, balance is their difference, counts are lengths."""

    rng = random.Random(2024)
    for _ in range(50):
        donation_amounts = [Decimal(rng.randint(1, 10_000_000)).scaleb(-2) for _ in range(rng.randint(0, 30))]
        expense_amounts = [Decimal(rng.randint(1, 10_000_000)).scaleb(-2) for _ in range(rng.randint(0, 30))]
        donations = [SimpleNamespace(amount=amount) for amount in donation_amounts]
        expenses = [SimpleNamespace(amount=amount) for amount in expense_amounts]

        summary = compute_summary(donations, expenses)

        assert summary.total_donations == sum(donation_amounts, Decimal(0))
        assert summary.total_expenses == sum(expense_amounts, Decimal(0))
        assert summary.remaining_balance == summary.total_donations - summary.total_expenses
        assert summary.donation_count == len(donations)
        assert summary.expense_count == len(expenses)
        assert compute_summary(donations, expenses) == summary


def test_deficit_balance_is_reported() -> None:
    summary = compute_summary([make_donation("100")], [make_expense("250.50")])

    assert summary.remaining_balance == Decimal("-150.50")
    assert balance_status(summary.remaining_balance) == "Deficit"
    assert balance_status(Decimal("0")) == "Surplus"


@pytest.mark.parametrize("amount", [Decimal("-5"), Decimal("0"), Decimal("NaN"), float("inf"), "ten", None])
def test_invalid_amounts_are_rejected(amount) -> None:
    """Bad amounts raise instead of being coerced into the totals."""

    with pytest.raises(ValidationError):
        compute_summary([SimpleNamespace(amount=Decimal("10")), SimpleNamespace(amount=amount)], [])
    with pytest.raises(ValidationError):
        compute_summary([], [SimpleNamespace(amount=amount)])


def test_goal_progress_is_clamped() -> None:
    """Progress runs from 0 to 100 and overshoot does not exceed 100."""

    assert compute_goal_progress(Decimal("50"), Decimal("100")) == 50.0
    assert compute_goal_progress(Decimal("150"), Decimal("100")) == 100.0
    assert remaining_to_goal(Decimal("150"), Decimal("100")) == Decimal("0")
    assert compute_goal_progress(Decimal("2000"), Decimal("2500")) == 80.0


@pytest.mark.parametrize("goal", [0, Decimal("0"), Decimal("-100")])
def test_missing_goal_gives_zero_progress(goal) -> None:
    """A goal of zero or less never divides by zero."""

    assert compute_goal_progress(Decimal("1500"), goal) == 0.0
    assert describe_goal(Decimal("1500"), goal).has_goal is False


def test_describe_goal_reports_reached() -> None:
    progress = describe_goal(Decimal("2500"), Decimal("2000"))

    assert progress.percentage == 100.0
    assert progress.remaining == Decimal("0")
    assert progress.reached is True
    assert progress.as_dict()["goal"] == "2000.00"
