"""Mini README: Pure financial aggregation over donation and expense lists.

Structure:
    * FinancialSummary - totals, balance and live record counts.
    * compute_summary - deterministic summary of two materialised lists.
    * compute_goal_progress - goal percentage clamped to [0, 100].
    * remaining_to_goal - unclamped shortfall, floored at zero.
    * GoalProgress / describe_goal - bundle of the goal figures for views.
    * balance_status - "Surplus" or "Deficit" label for the balance card.

Nothing here holds state or mutates its inputs. Amounts are summed as
``Decimal`` so repeated recomputation never drifts; any record whose amount
is not a finite positive number is rejected instead of being coerced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Sequence, Union

from ..errors import ValidationError
from ..records.models import MINOR_UNIT

Number = Union[Decimal, int, float, str]
ZERO = Decimal("0.00")
HUNDRED = Decimal(100)


@dataclass(frozen=True, slots=True)
class FinancialSummary:
    """Aggregate figures for one consistent set of records."""

    total_donations: Decimal = ZERO
    total_expenses: Decimal = ZERO
    remaining_balance: Decimal = ZERO
    donation_count: int = 0
    expense_count: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "total_donations": str(self.total_donations),
            "total_expenses": str(self.total_expenses),
            "remaining_balance": str(self.remaining_balance),
            "donation_count": self.donation_count,
            "expense_count": self.expense_count,
        }


EMPTY_SUMMARY = FinancialSummary()


def _as_decimal(value: Number, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError) as error:
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field) from error
    if not number.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return number


def _sum_amounts(records: Iterable[Any], kind: str) -> Decimal:
    total = ZERO
    for record in records:
        amount = _as_decimal(getattr(record, "amount", None), f"{kind} amount")
        if amount <= 0:
            raise ValidationError(f"{kind} amount must be greater than zero, got {amount}", field="amount")
        total += amount
    return total.quantize(MINOR_UNIT)


def compute_summary(donations: Sequence[Any], expenses: Sequence[Any]) -> FinancialSummary:
    """Summarise donations and expenses into totals, balance and counts."""

    total_donations = _sum_amounts(donations, "donation")
    total_expenses = _sum_amounts(expenses, "expense")
    return FinancialSummary(
        total_donations=total_donations,
        total_expenses=total_expenses,
        remaining_balance=total_donations - total_expenses,
        donation_count=len(donations),
        expense_count=len(expenses),
    )


def compute_goal_progress(total_donations: Number, fundraising_goal: Number) -> float:
    """Return goal progress as a percentage clamped to [0, 100].

    A goal of zero or less means no goal is set and yields 0 rather than an
    error or an infinite ratio.
    """

    goal = _as_decimal(fundraising_goal, "fundraising_goal")
    if goal <= 0:
        return 0.0
    ratio = _as_decimal(total_donations, "total_donations") / goal * HUNDRED
    return float(min(HUNDRED, max(Decimal(0), ratio)))


def remaining_to_goal(total_donations: Number, fundraising_goal: Number) -> Decimal:
    """Amount still needed to reach the goal, never negative."""

    goal = _as_decimal(fundraising_goal, "fundraising_goal")
    shortfall = goal - _as_decimal(total_donations, "total_donations")
    return max(ZERO, shortfall).quantize(MINOR_UNIT)


@dataclass(frozen=True, slots=True)
class GoalProgress:
    goal: Decimal
    percentage: float
    remaining: Decimal

    @property
    def has_goal(self) -> bool:
        return self.goal > 0

    @property
    def reached(self) -> bool:
        return self.has_goal and self.remaining == 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "goal": str(self.goal),
            "percentage": self.percentage,
            "remaining": str(self.remaining),
            "has_goal": self.has_goal,
            "reached": self.reached,
        }


def describe_goal(total_donations: Number, fundraising_goal: Number) -> GoalProgress:
    """Collect the goal figures shown beneath the donations card."""

    goal = max(ZERO, _as_decimal(fundraising_goal, "fundraising_goal"))
    return GoalProgress(
        goal=goal.quantize(MINOR_UNIT),
        percentage=compute_goal_progress(total_donations, goal),
        remaining=remaining_to_goal(total_donations, goal),
    )


def balance_status(remaining_balance: Number) -> str:
    return "Surplus" if _as_decimal(remaining_balance, "remaining_balance") >= 0 else "Deficit"
