"""Mini README: Record types and display helpers for festivalfund.

The ``models`` module defines the three record kinds the dashboard tracks
(donations, expenses and the singleton festival settings) together with the
coercion helpers used at the input boundary. The ``display`` module holds
pure lookups used by the views: category badges, anonymous donor names,
currency formatting and list previews.
"""

from .display import (
    CategoryStyle,
    ListPreview,
    admin_donation_row,
    donation_category_style,
    donor_display_name,
    expense_category_style,
    expense_row,
    format_currency,
    preview,
    public_donation_row,
)
from .models import (
    ANONYMOUS_DISPLAY_NAME,
    SETTINGS_ID,
    Donation,
    DonationCategory,
    Expense,
    ExpenseCategory,
    FestivalSettings,
    PaymentMethod,
    coerce_amount,
)

__all__ = [
    "ANONYMOUS_DISPLAY_NAME",
    "CategoryStyle",
    "Donation",
    "DonationCategory",
    "Expense",
    "ExpenseCategory",
    "FestivalSettings",
    "ListPreview",
    "PaymentMethod",
    "SETTINGS_ID",
    "admin_donation_row",
    "coerce_amount",
    "donation_category_style",
    "donor_display_name",
    "expense_category_style",
    "expense_row",
    "format_currency",
    "preview",
    "public_donation_row",
]
