"""
API v1 package.

Re-exports the router that aggregates every v1 sub-router:

    from onboarding.api.v1 import api_router
    app.include_router(api_router, prefix="/api/v1")
"""

from .router import router as api_router

__all__ = ["api_router"]
