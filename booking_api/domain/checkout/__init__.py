"""
Checkout Domain

Server-side booking validation, metadata encoding and hosted payment sessions.
"""

from .router import router

__all__ = ["router"]
