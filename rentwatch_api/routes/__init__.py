"""
Route package initialization.
"""
from .runs import router as runs_router
from .seen import router as seen_router

__all__ = ["runs_router", "seen_router"]
