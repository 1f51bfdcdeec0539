"""Mini README: Donation, expense and festival settings records.

Structure:
    * DonationCategory / PaymentMethod / ExpenseCategory - closed enums.
    * Donation - a contribution toward the festival fund.
    * Expense - an outflow for festival costs.
    * FestivalSettings - singleton festival metadata and fundraising goal.
    * from_payload helpers - coerce loosely typed form or store input.

Records are frozen and validated on construction, so anything that reaches
the aggregation engine already satisfies ``amount > 0``. Amounts are kept as
``Decimal`` quantised to currency minor units; summing them never drifts.
Identifiers and timestamps are ``None`` until a store assigns them.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from ..errors import ValidationError

MINOR_UNIT = Decimal("0.01")
SETTINGS_ID = "festival"
ANONYMOUS_DISPLAY_NAME = "Anonymous Donor"

_EnumT = TypeVar("_EnumT", bound="_LabelledEnum")


class _LabelledEnum(str, Enum):
    """String enum whose values are the labels shown to users."""

    @classmethod
    def from_str(cls: Type[_EnumT], value: object) -> _EnumT:
        """Coerce arbitrary casing into a valid member."""

        if isinstance(value, cls):
            return value
        try:
            normalised = str(value).strip().lower()
        except (TypeError, ValueError) as error:
            raise ValidationError(f"Unsupported {cls.__name__}: {value!r}") from error
        for member in cls:
            if member.value.lower() == normalised or member.name.lower() == normalised:
                return member
        raise ValidationError(f"Unsupported {cls.__name__}: {value!r}")


class DonationCategory(_LabelledEnum):
    INDIVIDUAL = "Individual"
    FAMILY = "Family"
    BUSINESS = "Business"
    ANONYMOUS = "Anonymous"


class PaymentMethod(_LabelledEnum):
    CASH = "Cash"
    ONLINE = "Online"
    CHECK = "Check"
    OTHER = "Other"


class ExpenseCategory(_LabelledEnum):
    DECORATIONS = "Decorations"
    FOOD = "Food/Prasadam"
    CULTURAL_PROGRAMS = "Cultural Programs"
    UTILITIES = "Utilities"
    SUPPLIES = "Supplies"
    OTHER = "Other"


def coerce_amount(value: object, *, field: str = "amount", allow_zero: bool = False) -> Decimal:
    """Return ``value`` as a Decimal in minor units, rejecting NaN and signs.

    Positive amounts are required unless ``allow_zero`` is set, in which case
    zero is accepted as well (fundraising goals).
    """

    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required and must be a number", field=field)
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(repr(value))
        elif isinstance(value, (int, str)):
            amount = Decimal(str(value).strip())
        else:
            raise ValidationError(f"{field} must be a number, got {type(value).__name__}", field=field)
    except InvalidOperation as error:
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field) from error

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    amount = amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    if amount < 0 or (amount == 0 and not allow_zero):
        qualifier = "zero or greater" if allow_zero else "greater than zero"
        raise ValidationError(f"{field} must be {qualifier}", field=field)
    return amount


def parse_date(value: object, *, field: str = "date") -> date:
    """Parse ISO formatted strings or date objects safely."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if "T" in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError as error:
            raise ValidationError(f"{field} must be an ISO date, got {value!r}", field=field) from error
    raise ValidationError(f"{field} is required and must be an ISO date", field=field)


def parse_timestamp(value: object, *, field: str = "timestamp") -> Optional[datetime]:
    """Parse optional store-assigned timestamps."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as error:
            raise ValidationError(f"{field} must be an ISO timestamp", field=field) from error
    raise ValidationError(f"{field} must be an ISO timestamp", field=field)


def parse_bool(value: object) -> bool:
    """Interpret checkbox style values ("on", "true", "1") as booleans."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def optional_text(value: object) -> Optional[str]:
    """Strip text values, collapsing blanks to ``None``."""

    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_text(value: object, field: str) -> str:
    text = optional_text(value)
    if text is None:
        raise ValidationError(f"{field} is required", field=field)
    return text


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _restrict_keys(payload: Mapping[str, Any], record_type: type, aliases: Mapping[str, str]) -> Dict[str, Any]:
    """Map payload aliases onto dataclass fields, rejecting unknown keys."""

    known = {item.name for item in fields(record_type)}
    mapped: Dict[str, Any] = {}
    for key, value in payload.items():
        target = aliases.get(key, key)
        if target not in known:
            raise ValidationError(f"Field '{key}' is not supported for {record_type.__name__}", field=key)
        mapped[target] = value
    return mapped


@dataclass(frozen=True, slots=True)
class Donation:
    """A contribution recorded by an admin."""

    donor_name: str
    amount: Decimal
    category: DonationCategory
    payment_method: PaymentMethod
    donation_date: date
    is_anonymous: bool = False
    donor_phone: Optional[str] = None
    donor_email: Optional[str] = None
    notes: Optional[str] = None
    donation_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        category = DonationCategory.from_str(self.category)
        is_anonymous = parse_bool(self.is_anonymous)
        donor_name = optional_text(self.donor_name) or ""
        if not donor_name and not (is_anonymous or category is DonationCategory.ANONYMOUS):
            raise ValidationError("donor_name is required unless the donation is anonymous", field="donor_name")
        object.__setattr__(self, "donor_name", donor_name)
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "payment_method", PaymentMethod.from_str(self.payment_method))
        object.__setattr__(self, "donation_date", parse_date(self.donation_date, field="donation_date"))
        object.__setattr__(self, "is_anonymous", is_anonymous)
        for name in ("donor_phone", "donor_email", "notes"):
            object.__setattr__(self, name, optional_text(getattr(self, name)))

    @property
    def hides_donor(self) -> bool:
        """Whether public views must not reveal the donor's name."""

        return self.is_anonymous or not self.donor_name

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Donation":
        """Build a donation from form fields or a stored row."""

        data = _restrict_keys(payload, cls, {"id": "donation_id"})
        data.setdefault("donor_name", "")
        data.setdefault("category", DonationCategory.INDIVIDUAL)
        data.setdefault("payment_method", PaymentMethod.CASH)
        for key in ("amount", "donation_date"):
            if key not in data:
                raise ValidationError(f"{key} is required", field=key)
        data["created_at"] = parse_timestamp(data.get("created_at"), field="created_at")
        data["updated_at"] = parse_timestamp(data.get("updated_at"), field="updated_at")
        return cls(**data)

    def with_identity(self, donation_id: str, created_at: datetime, updated_at: datetime) -> "Donation":
        """Return a copy carrying store-assigned identity and timestamps."""

        return replace(self, donation_id=donation_id, created_at=created_at, updated_at=updated_at)

    def as_dict(self) -> Dict[str, object]:
        """Export the donation with serialisable values."""

        return {
            "donation_id": self.donation_id,
            "donor_name": self.donor_name,
            "donor_phone": self.donor_phone,
            "donor_email": self.donor_email,
            "amount": str(self.amount),
            "category": self.category.value,
            "is_anonymous": self.is_anonymous,
            "payment_method": self.payment_method.value,
            "notes": self.notes,
            "donation_date": self.donation_date.isoformat(),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class Expense:
    """An outflow recorded against the festival fund."""

    title: str
    amount: Decimal
    category: ExpenseCategory
    expense_date: date
    description: Optional[str] = None
    vendor_name: Optional[str] = None
    receipt_number: Optional[str] = None
    expense_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", _required_text(self.title, "title"))
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        object.__setattr__(self, "category", ExpenseCategory.from_str(self.category))
        object.__setattr__(self, "expense_date", parse_date(self.expense_date, field="expense_date"))
        for name in ("description", "vendor_name", "receipt_number"):
            object.__setattr__(self, name, optional_text(getattr(self, name)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Expense":
        """Build an expense from form fields or a stored row."""

        data = _restrict_keys(payload, cls, {"id": "expense_id"})
        data.setdefault("category", ExpenseCategory.OTHER)
        for key in ("title", "amount", "expense_date"):
            if key not in data:
                raise ValidationError(f"{key} is required", field=key)
        data["created_at"] = parse_timestamp(data.get("created_at"), field="created_at")
        data["updated_at"] = parse_timestamp(data.get("updated_at"), field="updated_at")
        return cls(**data)

    def with_identity(self, expense_id: str, created_at: datetime, updated_at: datetime) -> "Expense":
        """Return a copy carrying store-assigned identity and timestamps."""

        return replace(self, expense_id=expense_id, created_at=created_at, updated_at=updated_at)

    def as_dict(self) -> Dict[str, object]:
        """Export the expense with serialisable values."""

        return {
            "expense_id": self.expense_id,
            "title": self.title,
            "description": self.description,
            "amount": str(self.amount),
            "category": self.category.value,
            "vendor_name": self.vendor_name,
            "receipt_number": self.receipt_number,
            "expense_date": self.expense_date.isoformat(),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }


@dataclass(frozen=True, slots=True)
class FestivalSettings:
    """Singleton festival metadata including the fundraising goal."""

    festival_name: str
    festival_year: int
    start_date: date
    end_date: date
    fundraising_goal: Decimal = Decimal("0.00")
    location: str = ""
    description: str = ""
    settings_id: str = SETTINGS_ID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "festival_name", _required_text(self.festival_name, "festival_name"))
        try:
            year = int(self.festival_year)
        except (TypeError, ValueError) as error:
            raise ValidationError("festival_year must be a whole number", field="festival_year") from error
        if year <= 0 or isinstance(self.festival_year, bool):
            raise ValidationError("festival_year must be a positive year", field="festival_year")
        start = parse_date(self.start_date, field="start_date")
        end = parse_date(self.end_date, field="end_date")
        if end < start:
            raise ValidationError("end_date must not precede start_date", field="end_date")
        object.__setattr__(self, "festival_year", year)
        object.__setattr__(self, "start_date", start)
        object.__setattr__(self, "end_date", end)
        object.__setattr__(
            self,
            "fundraising_goal",
            coerce_amount(self.fundraising_goal, field="fundraising_goal", allow_zero=True),
        )
        object.__setattr__(self, "location", optional_text(self.location) or "")
        object.__setattr__(self, "description", optional_text(self.description) or "")
        object.__setattr__(self, "settings_id", SETTINGS_ID)

    @classmethod
    def defaults(cls, today: Optional[date] = None) -> "FestivalSettings":
        """Return the settings a fresh installation starts from."""

        today = today or date.today()
        return cls(
            festival_name="Vinayaka Chavithi",
            festival_year=today.year,
            start_date=today,
            end_date=today + timedelta(days=10),
            fundraising_goal=Decimal("50000"),
            description=(
                "Join us in celebrating Lord Ganesha with devotion, community spirit,"
                " and complete financial transparency."
            ),
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "FestivalSettings":
        """Build settings from form fields or a stored row."""

        data = _restrict_keys(payload, cls, {"id": "settings_id"})
        for key in ("festival_name", "festival_year", "start_date", "end_date"):
            if key not in data:
                raise ValidationError(f"{key} is required", field=key)
        data["created_at"] = parse_timestamp(data.get("created_at"), field="created_at")
        data["updated_at"] = parse_timestamp(data.get("updated_at"), field="updated_at")
        return cls(**data)

    def with_timestamps(self, created_at: datetime, updated_at: datetime) -> "FestivalSettings":
        return replace(self, created_at=created_at, updated_at=updated_at)

    def as_dict(self) -> Dict[str, object]:
        """Export the settings with serialisable values."""

        return {
            "settings_id": self.settings_id,
            "festival_name": self.festival_name,
            "festival_year": self.festival_year,
            "location": self.location,
            "description": self.description,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "fundraising_goal": str(self.fundraising_goal),
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
        }
