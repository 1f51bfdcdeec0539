"""Mini README: Relational festival store backed by SQLAlchemy.

Structure:
    * Base / DonationRow / ExpenseRow / FestivalSettingsRow - ORM tables.
    * create_store_engine - engine factory with SQLite threading defaults.
    * SqlFestivalStore - ``FestivalStore`` implementation over an engine.

SQLAlchemy work is blocking, so every public coroutine hands its unit of work
to ``asyncio.to_thread`` and keeps the event loop free. Each unit runs inside
``session_scope`` (commit on success, rollback on failure). Connectivity
failures surface as ``TransientIOError``; constraint violations such as a
non-positive amount surface as ``ValidationError``. Change events are
published only after the transaction commits.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from functools import wraps
from typing import Any, Awaitable, Callable, Iterator, List, Optional, TypeVar

from sqlalchemy import Boolean, CheckConstraint, Date, DateTime, Integer, Numeric, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
)
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from ..errors import NotFoundError, TransientIOError, ValidationError
from ..logging_utils import get_logger
from ..records.models import SETTINGS_ID, Donation, Expense, FestivalSettings
from .base import ChangeAction, ChangeFeed, FestivalStore

LOGGER = get_logger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    pass


class DonationRow(Base):
    __tablename__ = "donations"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_donations_amount_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    donor_name: Mapped[str] = mapped_column(String, nullable=False, default="")
    donor_phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    donor_email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    donation_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ExpenseRow(Base):
    __tablename__ = "expenses"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    vendor_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    receipt_number: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class FestivalSettingsRow(Base):
    __tablename__ = "festival_settings"
    __table_args__ = (CheckConstraint("fundraising_goal >= 0", name="ck_settings_goal_non_negative"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    festival_name: Mapped[str] = mapped_column(String, nullable=False)
    festival_year: Mapped[int] = mapped_column(Integer, nullable=False)
    location: Mapped[str] = mapped_column(String, nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    fundraising_goal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def create_store_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections may be shared across worker threads."""

    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def _translate_errors(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Map SQLAlchemy failures onto the festivalfund error taxonomy."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except IntegrityError as error:
            LOGGER.warning("Store rejected write in %s: %s", func.__name__, error.orig)
            raise ValidationError(f"Store rejected the record: {error.orig}") from error
        except (OperationalError, InterfaceError, DisconnectionError, PoolTimeoutError) as error:
            LOGGER.warning("Store unavailable during %s: %s", func.__name__, error)
            raise TransientIOError(f"Store unavailable during {func.__name__}") from error

    return wrapper


def _donation_from_row(row: DonationRow) -> Donation:
    return Donation(
        donation_id=row.id,
        donor_name=row.donor_name,
        donor_phone=row.donor_phone,
        donor_email=row.donor_email,
        amount=row.amount,
        category=row.category,
        is_anonymous=row.is_anonymous,
        payment_method=row.payment_method,
        notes=row.notes,
        donation_date=row.donation_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _expense_from_row(row: ExpenseRow) -> Expense:
    return Expense(
        expense_id=row.id,
        title=row.title,
        description=row.description,
        amount=row.amount,
        category=row.category,
        vendor_name=row.vendor_name,
        receipt_number=row.receipt_number,
        expense_date=row.expense_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _settings_from_row(row: FestivalSettingsRow) -> FestivalSettings:
    return FestivalSettings(
        festival_name=row.festival_name,
        festival_year=row.festival_year,
        location=row.location,
        description=row.description,
        start_date=row.start_date,
        end_date=row.end_date,
        fundraising_goal=row.fundraising_goal,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply_donation(row: DonationRow, donation: Donation) -> None:
    row.donor_name = donation.donor_name
    row.donor_phone = donation.donor_phone
    row.donor_email = donation.donor_email
    row.amount = donation.amount
    row.category = donation.category.value
    row.is_anonymous = donation.is_anonymous
    row.payment_method = donation.payment_method.value
    row.notes = donation.notes
    row.donation_date = donation.donation_date


def _apply_expense(row: ExpenseRow, expense: Expense) -> None:
    row.title = expense.title
    row.description = expense.description
    row.amount = expense.amount
    row.category = expense.category.value
    row.vendor_name = expense.vendor_name
    row.receipt_number = expense.receipt_number
    row.expense_date = expense.expense_date


def _apply_settings(row: FestivalSettingsRow, settings: FestivalSettings) -> None:
    row.festival_name = settings.festival_name
    row.festival_year = settings.festival_year
    row.location = settings.location
    row.description = settings.description
    row.start_date = settings.start_date
    row.end_date = settings.end_date
    row.fundraising_goal = settings.fundraising_goal


class SqlFestivalStore(FestivalStore):
    """Persist festival records in a relational database."""

    def __init__(
        self,
        engine: Engine,
        *,
        changes: Optional[ChangeFeed] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        super().__init__(changes)
        self.engine = engine
        self._clock = clock
        self._session_maker = sessionmaker(bind=engine, expire_on_commit=False, class_=Session)

    @classmethod
    def from_url(cls, database_url: str, *, create_schema: bool = True) -> "SqlFestivalStore":
        """Build a store for ``database_url``, creating tables when asked."""

        store = cls(create_store_engine(database_url))
        if create_schema:
            store.create_schema()
        return store

    def create_schema(self) -> None:
        """Create the donations, expenses and settings tables if missing."""

        Base.metadata.create_all(self.engine)
        LOGGER.info("Ensured festival tables exist on %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""

        session = self._session_maker()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @_translate_errors
    async def list_donations(self) -> List[Donation]:
        def work() -> List[Donation]:
            with self.session_scope() as session:
                rows = session.scalars(
                    select(DonationRow).order_by(DonationRow.donation_date.desc(), DonationRow.created_at.desc())
                )
                return [_donation_from_row(row) for row in rows]

        return await asyncio.to_thread(work)

    @_translate_errors
    async def list_expenses(self) -> List[Expense]:
        def work() -> List[Expense]:
            with self.session_scope() as session:
                rows = session.scalars(
                    select(ExpenseRow).order_by(ExpenseRow.expense_date.desc(), ExpenseRow.created_at.desc())
                )
                return [_expense_from_row(row) for row in rows]

        return await asyncio.to_thread(work)

    @_translate_errors
    async def get_settings(self) -> Optional[FestivalSettings]:
        def work() -> Optional[FestivalSettings]:
            with self.session_scope() as session:
                row = session.get(FestivalSettingsRow, SETTINGS_ID)
                return _settings_from_row(row) if row else None

        return await asyncio.to_thread(work)

    @_translate_errors
    async def create_donation(self, donation: Donation) -> Donation:
        def work() -> Donation:
            now = self._clock()
            row = DonationRow(id=str(uuid.uuid4()), created_at=now, updated_at=now)
            _apply_donation(row, donation)
            with self.session_scope() as session:
                session.add(row)
            return donation.with_identity(row.id, now, now)

        stored = await asyncio.to_thread(work)
        LOGGER.info("Recorded donation %s (%s)", stored.donation_id, stored.amount)
        self.changes.publish("donations", ChangeAction.INSERT, stored.donation_id)
        return stored

    @_translate_errors
    async def update_donation(self, donation_id: str, donation: Donation) -> Donation:
        def work() -> Donation:
            with self.session_scope() as session:
                row = session.get(DonationRow, donation_id)
                if row is None:
                    raise NotFoundError("donation", donation_id)
                _apply_donation(row, donation)
                row.updated_at = self._clock()
                created_at, updated_at = row.created_at, row.updated_at
            return donation.with_identity(donation_id, created_at, updated_at)

        stored = await asyncio.to_thread(work)
        LOGGER.info("Updated donation %s", donation_id)
        self.changes.publish("donations", ChangeAction.UPDATE, donation_id)
        return stored

    @_translate_errors
    async def delete_donation(self, donation_id: str) -> None:
        def work() -> None:
            with self.session_scope() as session:
                row = session.get(DonationRow, donation_id)
                if row is None:
                    raise NotFoundError("donation", donation_id)
                session.delete(row)

        await asyncio.to_thread(work)
        LOGGER.info("Deleted donation %s", donation_id)
        self.changes.publish("donations", ChangeAction.DELETE, donation_id)

    @_translate_errors
    async def create_expense(self, expense: Expense) -> Expense:
        def work() -> Expense:
            now = self._clock()
            row = ExpenseRow(id=str(uuid.uuid4()), created_at=now, updated_at=now)
            _apply_expense(row, expense)
            with self.session_scope() as session:
                session.add(row)
            return expense.with_identity(row.id, now, now)

        stored = await asyncio.to_thread(work)
        LOGGER.info("Recorded expense %s (%s)", stored.expense_id, stored.amount)
        self.changes.publish("expenses", ChangeAction.INSERT, stored.expense_id)
        return stored

    @_translate_errors
    async def update_expense(self, expense_id: str, expense: Expense) -> Expense:
        def work() -> Expense:
            with self.session_scope() as session:
                row = session.get(ExpenseRow, expense_id)
                if row is None:
                    raise NotFoundError("expense", expense_id)
                _apply_expense(row, expense)
                row.updated_at = self._clock()
                created_at, updated_at = row.created_at, row.updated_at
            return expense.with_identity(expense_id, created_at, updated_at)

        stored = await asyncio.to_thread(work)
        LOGGER.info("Updated expense %s", expense_id)
        self.changes.publish("expenses", ChangeAction.UPDATE, expense_id)
        return stored

    @_translate_errors
    async def delete_expense(self, expense_id: str) -> None:
        def work() -> None:
            with self.session_scope() as session:
                row = session.get(ExpenseRow, expense_id)
                if row is None:
                    raise NotFoundError("expense", expense_id)
                session.delete(row)

        await asyncio.to_thread(work)
        LOGGER.info("Deleted expense %s", expense_id)
        self.changes.publish("expenses", ChangeAction.DELETE, expense_id)

    @_translate_errors
    async def upsert_settings(self, settings: FestivalSettings) -> FestivalSettings:
        def work() -> tuple:
            now = self._clock()
            with self.session_scope() as session:
                row = session.get(FestivalSettingsRow, SETTINGS_ID)
                action = ChangeAction.UPDATE
                if row is None:
                    row = FestivalSettingsRow(id=SETTINGS_ID, created_at=now)
                    session.add(row)
                    action = ChangeAction.INSERT
                _apply_settings(row, settings)
                row.updated_at = now
                created_at = row.created_at
            return settings.with_timestamps(created_at, now), action

        stored, action = await asyncio.to_thread(work)
        LOGGER.info("Saved festival settings for %s %s", stored.festival_name, stored.festival_year)
        self.changes.publish("festival_settings", action, SETTINGS_ID)
        return stored

    async def close(self) -> None:
        await asyncio.to_thread(self.engine.dispose)
