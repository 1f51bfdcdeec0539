"""Mini README: Centralised configuration models and helpers for festivalfund.

Structure:
    * FestivalFundSettings - Pydantic model describing runtime configuration.
    * get_settings - cached accessor for environment-aware settings.

Usage:
    Import ``get_settings`` to read ``FESTIVALFUND_*`` environment variables
    (or a local ``.env`` file). Leaving ``database_url`` unset runs the
    dashboard on the in-memory store, which is handy for demos and tests.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings


class FestivalFundSettings(BaseSettings):
    """Runtime configuration for the festival transparency dashboard."""

    environment: str = Field(
        "development",
        description="Environment label controlling debug toggles and logging levels.",
    )
    log_level: str = Field("INFO", description="Root logging level name.")
    interface_host: str = Field(
        "0.0.0.0",
        description="Network interface for the web dashboard to bind to.",
    )
    interface_port: int = Field(
        8000,
        description="Default port the web dashboard exposes.",
        ge=1,
        le=65535,
    )
    database_url: Optional[str] = Field(
        None,
        description=(
            "SQLAlchemy URL of the relational store, e.g. sqlite:///festival.db."
            " Leave unset to keep records in memory for the lifetime of the process."
        ),
    )
    demo_data: bool = Field(
        False,
        description="Seed the in-memory store with sample donations and expenses.",
    )
    poll_interval_seconds: float = Field(
        30.0,
        description="Fallback polling interval when change notifications are missed.",
    )
    fetch_timeout_seconds: float = Field(
        10.0,
        description="Upper bound for each list/settings fetch within a reload.",
    )
    admin_email: str = Field(
        "admin@festival.local",
        description="E-mail address accepted by the admin sign-in form.",
    )
    admin_password: str = Field(
        "change-me",
        description="Password accepted by the admin sign-in form.",
    )
    session_ttl_minutes: int = Field(
        12 * 60,
        description="Lifetime of an admin session token.",
        ge=1,
    )
    currency_symbol: str = Field("₹", description="Symbol prefixed to formatted amounts.")
    public_donation_preview: int = Field(8, ge=1)
    public_expense_preview: int = Field(6, ge=1)
    admin_dashboard_preview: int = Field(5, ge=1)

    class Config:
        env_prefix = "FESTIVALFUND_"
        env_file = ".env"
        case_sensitive = False

    @validator("poll_interval_seconds", "fetch_timeout_seconds")
    def _positive_interval(cls, value: float) -> float:
        """Reject zero or negative refresh intervals."""

        if value <= 0:
            raise ValueError("Intervals must be positive numbers of seconds.")
        return value


@lru_cache()
def get_settings() -> FestivalFundSettings:
    """Return cached settings, ensuring consistent configuration across modules."""

    return FestivalFundSettings()
