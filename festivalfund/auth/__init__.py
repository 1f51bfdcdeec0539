"""Mini README: Authentication collaborator gating the admin view.

Re-exports the session-based ``AdminAuthenticator`` and its value types so
web handlers can import them from one place.
"""

from .sessions import AdminAuthenticator, AdminSession, AdminUser

__all__ = ["AdminAuthenticator", "AdminSession", "AdminUser"]
