"""
Webhooks Domain

Payment provider events and the reconciler that commits paid bookings.
"""

from .router import router

__all__ = ["router"]
