"""Mini README: FastAPI-powered festival transparency dashboard.

Structure:
    * create_application - application factory wiring store, cache, refresh
      coordinator, admin actions, authentication, routes and templates.
    * Public routes - HTML dashboard plus read-only JSON endpoints. Donor
      contact details and notes never leave the admin routes, and anonymous
      donors are shown as "Anonymous Donor".
    * Admin routes - bearer-token protected writes mirroring the
      admin forms (form-encoded fields, delete requires ``confirm=true``).

Every view reads the cache's current snapshot; no handler assembles figures
from partial data. Domain errors map onto HTTP status codes: validation 400,
authentication 401, unknown record 404, store unavailable 503.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from fastapi.templating import Jinja2Templates

from ..admin import AdminActions
from ..aggregation import EMPTY_SUMMARY, RefreshCoordinator, SnapshotCache, balance_status, describe_goal
from ..auth import AdminAuthenticator, AdminUser
from ..configuration import FestivalFundSettings, get_settings
from ..errors import (
    AuthenticationError,
    FestivalFundError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from ..logging_utils import configure_root_logger, get_logger
from ..records import (
    FestivalSettings,
    admin_donation_row,
    donation_category_style,
    donor_display_name,
    expense_category_style,
    expense_row,
    format_currency,
    preview,
    public_donation_row,
)
from ..store import FestivalStore, build_store

LOGGER = get_logger(__name__)


def _http_error(error: FestivalFundError) -> HTTPException:
    """Translate a domain error into the matching HTTP error."""

    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, AuthenticationError):
        return HTTPException(status_code=401, detail=str(error), headers={"WWW-Authenticate": "Bearer"})
    if isinstance(error, TransientIOError):
        return HTTPException(status_code=503, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def create_application(
    settings: Optional[FestivalFundSettings] = None,
    store: Optional[FestivalStore] = None,
    authenticator: Optional[AdminAuthenticator] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    configure_root_logger(settings.log_level)
    store = store or build_store(settings.database_url, seed_demo=settings.demo_data)
    cache = SnapshotCache(store, fetch_timeout=settings.fetch_timeout_seconds)
    coordinator = RefreshCoordinator(cache, store, poll_interval=settings.poll_interval_seconds)
    actions = AdminActions(store, cache, coordinator)
    authenticator = authenticator or AdminAuthenticator(
        settings.admin_email,
        settings.admin_password,
        session_ttl=timedelta(minutes=settings.session_ttl_minutes),
    )
    templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
    bearer = HTTPBearer(auto_error=False)
    symbol = settings.currency_symbol

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await coordinator.start()
        await coordinator.wait_until_idle()
        LOGGER.info("Dashboard ready (status: %s)", cache.status.value)
        try:
            yield
        finally:
            await coordinator.stop()
            await store.close()

    app = FastAPI(title="Festival Fund Dashboard", version="1.0.0", lifespan=lifespan)
    app.state.store = store
    app.state.cache = cache
    app.state.coordinator = coordinator
    app.state.authenticator = authenticator

    def require_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> AdminUser:
        try:
            return authenticator.require_user(credentials.credentials if credentials else None)
        except AuthenticationError as error:
            raise _http_error(error) from error

    def summary_payload() -> Dict[str, Any]:
        snapshot = cache.snapshot
        summary = snapshot.summary if snapshot else EMPTY_SUMMARY
        goal = snapshot.goal if snapshot else describe_goal(summary.total_donations, 0)
        return {
            **cache.describe_status(),
            "summary": summary.as_dict(),
            "goal": goal.as_dict(),
            "balance_status": balance_status(summary.remaining_balance),
            "formatted": {
                "total_donations": format_currency(summary.total_donations, symbol),
                "total_expenses": format_currency(summary.total_expenses, symbol),
                "remaining_balance": format_currency(abs(summary.remaining_balance), symbol),
                "goal": format_currency(goal.goal, symbol),
                "remaining_to_goal": format_currency(goal.remaining, symbol),
            },
        }

    @app.get("/health")
    async def health() -> JSONResponse:
        return JSONResponse({"status": "ok", "cache": cache.status.value})

    @app.get("/", response_class=HTMLResponse)
    async def dashboard(request: Request) -> HTMLResponse:
        """Render the public transparency dashboard."""

        snapshot = cache.snapshot
        donations = preview(snapshot.donations if snapshot else (), settings.public_donation_preview)
        expenses = preview(snapshot.expenses if snapshot else (), settings.public_expense_preview)
        LOGGER.debug("Rendering dashboard (status: %s)", cache.status.value)
        return templates.TemplateResponse(
            request,
            "dashboard.html",
            {
                "status": cache.describe_status(),
                "festival": snapshot.settings if snapshot else None,
                "figures": summary_payload(),
                "donations": donations,
                "expenses": expenses,
                "donor_name": donor_display_name,
                "donation_style": donation_category_style,
                "expense_style": expense_category_style,
                "money": lambda amount: format_currency(amount, symbol),
            },
        )

    @app.get("/api/summary")
    async def api_summary() -> JSONResponse:
        return JSONResponse(summary_payload())

    @app.get("/api/settings")
    async def api_settings() -> JSONResponse:
        snapshot = cache.snapshot
        settings_row = snapshot.settings if snapshot else None
        return JSONResponse({"settings": settings_row.as_dict() if settings_row else None})

    @app.get("/api/donations")
    async def api_donations(limit: Optional[int] = Query(None, ge=1)) -> JSONResponse:
        """Public donation list; contact details and notes are withheld."""

        snapshot = cache.snapshot
        listing = preview(snapshot.donations if snapshot else (), limit or settings.public_donation_preview)
        return JSONResponse(
            {
                "donations": [public_donation_row(donation) for donation in listing.items],
                "total": listing.total,
                "caption": listing.caption,
            }
        )

    @app.get("/api/expenses")
    async def api_expenses(limit: Optional[int] = Query(None, ge=1)) -> JSONResponse:
        snapshot = cache.snapshot
        listing = preview(snapshot.expenses if snapshot else (), limit or settings.public_expense_preview)
        return JSONResponse(
            {
                "expenses": [expense_row(expense) for expense in listing.items],
                "total": listing.total,
                "caption": listing.caption,
            }
        )

    @app.post("/auth/sign-in")
    async def sign_in(email: str = Form(...), password: str = Form(...)) -> JSONResponse:
        try:
            session = authenticator.sign_in(email, password)
        except AuthenticationError as error:
            raise _http_error(error) from error
        return JSONResponse(
            {
                "token": session.token,
                "email": session.user.email,
                "expires_at": session.expires_at.isoformat(),
            }
        )

    @app.post("/auth/sign-out")
    async def sign_out(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> JSONResponse:
        if credentials is not None:
            authenticator.sign_out(credentials.credentials)
        return JSONResponse({"signed_out": True})

    @app.get("/auth/me")
    async def me(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        return JSONResponse({"email": user.email})

    @app.get("/admin/dashboard")
    async def admin_dashboard(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        """Summary plus the most recent donations and expenses with full details."""

        snapshot = cache.snapshot
        limit = settings.admin_dashboard_preview
        donations = preview(snapshot.donations if snapshot else (), limit)
        expenses = preview(snapshot.expenses if snapshot else (), limit)
        return JSONResponse(
            {
                **summary_payload(),
                "recent_donations": [admin_donation_row(donation) for donation in donations.items],
                "recent_expenses": [expense_row(expense) for expense in expenses.items],
            }
        )

    @app.get("/admin/donations")
    async def admin_donations(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        snapshot = cache.snapshot
        donations = snapshot.donations if snapshot else ()
        return JSONResponse({"donations": [admin_donation_row(donation) for donation in donations]})

    @app.get("/admin/expenses")
    async def admin_expenses(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        snapshot = cache.snapshot
        expenses = snapshot.expenses if snapshot else ()
        return JSONResponse({"expenses": [expense_row(expense) for expense in expenses]})

    def donation_form(
        donor_name: str = Form(""),
        amount: str = Form(...),
        category: str = Form("Individual"),
        is_anonymous: bool = Form(False),
        payment_method: str = Form("Cash"),
        donation_date: str = Form(...),
        donor_phone: Optional[str] = Form(None),
        donor_email: Optional[str] = Form(None),
        notes: Optional[str] = Form(None),
    ) -> Dict[str, Any]:
        return {
            "donor_name": donor_name,
            "amount": amount,
            "category": category,
            "is_anonymous": is_anonymous,
            "payment_method": payment_method,
            "donation_date": donation_date,
            "donor_phone": donor_phone,
            "donor_email": donor_email,
            "notes": notes,
        }

    def expense_form(
        title: str = Form(...),
        amount: str = Form(...),
        category: str = Form("Other"),
        expense_date: str = Form(...),
        description: Optional[str] = Form(None),
        vendor_name: Optional[str] = Form(None),
        receipt_number: Optional[str] = Form(None),
    ) -> Dict[str, Any]:
        return {
            "title": title,
            "amount": amount,
            "category": category,
            "expense_date": expense_date,
            "description": description,
            "vendor_name": vendor_name,
            "receipt_number": receipt_number,
        }

    @app.post("/admin/donations")
    async def add_donation(
        payload: Dict[str, Any] = Depends(donation_form),
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            donation = await actions.add_donation(payload)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s added donation %s", user.email, donation.donation_id)
        return JSONResponse({"donation": admin_donation_row(donation)}, status_code=201)

    @app.post("/admin/donations/{donation_id}")
    async def edit_donation(
        donation_id: str,
        payload: Dict[str, Any] = Depends(donation_form),
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            donation = await actions.edit_donation(donation_id, payload)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s edited donation %s", user.email, donation_id)
        return JSONResponse({"donation": admin_donation_row(donation)})

    @app.delete("/admin/donations/{donation_id}")
    async def delete_donation(
        donation_id: str,
        confirm: bool = False,
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            await actions.remove_donation(donation_id, confirmed=confirm)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s deleted donation %s", user.email, donation_id)
        return JSONResponse({"deleted": donation_id})

    @app.post("/admin/expenses")
    async def add_expense(
        payload: Dict[str, Any] = Depends(expense_form),
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            expense = await actions.add_expense(payload)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s added expense %s", user.email, expense.expense_id)
        return JSONResponse({"expense": expense_row(expense)}, status_code=201)

    @app.post("/admin/expenses/{expense_id}")
    async def edit_expense(
        expense_id: str,
        payload: Dict[str, Any] = Depends(expense_form),
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            expense = await actions.edit_expense(expense_id, payload)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s edited expense %s", user.email, expense_id)
        return JSONResponse({"expense": expense_row(expense)})

    @app.delete("/admin/expenses/{expense_id}")
    async def delete_expense(
        expense_id: str,
        confirm: bool = False,
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        try:
            await actions.remove_expense(expense_id, confirmed=confirm)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s deleted expense %s", user.email, expense_id)
        return JSONResponse({"deleted": expense_id})

    @app.get("/admin/settings")
    async def admin_settings(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        """Current settings, or the defaults the settings form starts from."""

        snapshot = cache.snapshot
        current = snapshot.settings if snapshot else None
        return JSONResponse(
            {
                "settings": (current or FestivalSettings.defaults()).as_dict(),
                "saved": current is not None,
            }
        )

    @app.post("/admin/settings")
    async def save_settings(
        festival_name: str = Form(...),
        festival_year: str = Form(...),
        start_date: str = Form(...),
        end_date: str = Form(...),
        fundraising_goal: str = Form("0"),
        location: str = Form(""),
        description: str = Form(""),
        user: AdminUser = Depends(require_admin),
    ) -> JSONResponse:
        payload = {
            "festival_name": festival_name,
            "festival_year": festival_year,
            "start_date": start_date,
            "end_date": end_date,
            "fundraising_goal": fundraising_goal,
            "location": location,
            "description": description,
        }
        try:
            saved = await actions.save_settings(payload)
        except FestivalFundError as error:
            raise _http_error(error) from error
        LOGGER.info("Admin %s saved festival settings", user.email)
        return JSONResponse({"settings": saved.as_dict()})

    @app.post("/admin/reload")
    async def force_reload(user: AdminUser = Depends(require_admin)) -> JSONResponse:
        try:
            await coordinator.refresh_and_wait()
        except FestivalFundError as error:
            raise _http_error(error) from error
        return JSONResponse(summary_payload())

    return app
