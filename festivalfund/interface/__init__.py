"""Mini README: Web interface for the festival dashboard.

Exports the FastAPI application factory serving the public transparency
view and the admin endpoints. Templates live in ``templates/``.
"""

from .web_app import create_application

__all__ = ["create_application"]
