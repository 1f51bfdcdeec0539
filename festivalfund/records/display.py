"""Mini README: Display helpers shared by the public and admin views.

Structure:
    * CategoryStyle - icon and colour pair for a category badge.
    * donation_category_style / expense_category_style - total lookups.
    * donor_display_name - hides names of anonymous donors.
    * format_currency - Indian digit grouping with two decimals.
    * ListPreview / preview - truncated lists with "Showing X of Y" counts.
    * public_donation_row / admin_donation_row / expense_row - view rows.

Lookups accept enum members or raw strings and fall back to a neutral style
for anything unrecognised, so a bad row never breaks rendering.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Generic, List, Sequence, TypeVar, Union

from .models import (
    ANONYMOUS_DISPLAY_NAME,
    MINOR_UNIT,
    Donation,
    DonationCategory,
    Expense,
    ExpenseCategory,
)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CategoryStyle:
    icon: str
    colour: str


NEUTRAL_STYLE = CategoryStyle(icon="📋", colour="bg-gray-50 text-gray-700")

_DONATION_STYLES: Dict[str, CategoryStyle] = {
    DonationCategory.INDIVIDUAL.value: CategoryStyle("👤", "bg-green-50 text-green-700"),
    DonationCategory.FAMILY.value: CategoryStyle("👨‍👩‍👧‍👦", "bg-blue-50 text-blue-700"),
    DonationCategory.BUSINESS.value: CategoryStyle("🏢", "bg-purple-50 text-purple-700"),
    DonationCategory.ANONYMOUS.value: CategoryStyle("🤝", "bg-gray-50 text-gray-700"),
}

_EXPENSE_STYLES: Dict[str, CategoryStyle] = {
    ExpenseCategory.DECORATIONS.value: CategoryStyle("🎨", "bg-pink-50 text-pink-700"),
    ExpenseCategory.FOOD.value: CategoryStyle("🍽️", "bg-orange-50 text-orange-700"),
    ExpenseCategory.CULTURAL_PROGRAMS.value: CategoryStyle("🎭", "bg-purple-50 text-purple-700"),
    ExpenseCategory.UTILITIES.value: CategoryStyle("⚡", "bg-yellow-50 text-yellow-700"),
    ExpenseCategory.SUPPLIES.value: CategoryStyle("📦", "bg-blue-50 text-blue-700"),
    ExpenseCategory.OTHER.value: NEUTRAL_STYLE,
}


def _label(value: object) -> str:
    if isinstance(value, (DonationCategory, ExpenseCategory)):
        return value.value
    return str(value)


def donation_category_style(category: Union[DonationCategory, str, None]) -> CategoryStyle:
    """Return the badge style for a donation category."""

    return _DONATION_STYLES.get(_label(category), NEUTRAL_STYLE)


def expense_category_style(category: Union[ExpenseCategory, str, None]) -> CategoryStyle:
    """Return the badge style for an expense category."""

    return _EXPENSE_STYLES.get(_label(category), NEUTRAL_STYLE)


def donor_display_name(donation: Donation) -> str:
    """Name shown publicly; anonymous donations never reveal the stored name."""

    return ANONYMOUS_DISPLAY_NAME if donation.hides_donor else donation.donor_name


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Union[Decimal, int, float, str], symbol: str = "₹") -> str:
    """Format an amount like ``₹1,50,000.00`` (lakh/crore grouping)."""

    value = Decimal(str(amount)).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    whole, _, fraction = f"{abs(value):.2f}".partition(".")
    return f"{sign}{symbol}{_group_indian(whole)}.{fraction}"


@dataclass(frozen=True)
class ListPreview(Generic[T]):
    items: List[T]
    total: int

    @property
    def truncated(self) -> bool:
        return self.total > len(self.items)

    @property
    def caption(self) -> str:
        """Caption such as "Showing 8 of 12", empty when nothing was cut."""

        return f"Showing {len(self.items)} of {self.total}" if self.truncated else ""


def preview(records: Sequence[T], limit: int) -> ListPreview[T]:
    """Return the first ``limit`` records together with the full count."""

    if limit < 0:
        raise ValueError("Preview limit must not be negative.")
    return ListPreview(items=list(records[:limit]), total=len(records))


def public_donation_row(donation: Donation) -> Dict[str, object]:
    """Donation fields for the public view, without contact details or notes."""

    style = donation_category_style(donation.category)
    return {
        "donation_id": donation.donation_id,
        "display_name": donor_display_name(donation),
        "amount": str(donation.amount),
        "category": donation.category.value,
        "payment_method": donation.payment_method.value,
        "donation_date": donation.donation_date.isoformat(),
        "icon": style.icon,
        "colour": style.colour,
    }


def admin_donation_row(donation: Donation) -> Dict[str, object]:
    """Full donation details for authenticated admins."""

    row = donation.as_dict()
    row["display_name"] = donor_display_name(donation)
    style = donation_category_style(donation.category)
    row.update(icon=style.icon, colour=style.colour)
    return row


def expense_row(expense: Expense) -> Dict[str, object]:
    """Expense fields with badge styling; expenses carry no personal data."""

    row = expense.as_dict()
    style = expense_category_style(expense.category)
    row.update(icon=style.icon, colour=style.colour)
    return row
