"""Mini README: Admin-side write handlers.

Exports ``AdminActions``, the single place where donation, expense and
settings writes are validated, sent to the store and confirmed by reload.
"""

from .actions import AdminActions

__all__ = ["AdminActions"]
