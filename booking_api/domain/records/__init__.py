"""
Records Domain

Payment-confirmed appointments and rental listings: confirmation polling
and admin management.
"""

from .router import router

__all__ = ["router"]
