"""
Scheduling Domain

Working hours, blocked dates, and the availability engine that turns them
into bookable slots.
"""

from .router import router

__all__ = ["router"]
