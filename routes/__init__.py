"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.batch_planning import router as batch_planning_router

__all__ = [
    "batch_planning_router",
]
