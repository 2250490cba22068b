"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the onboarding service
"""

from fastapi import APIRouter

from onboarding.api.v1 import admin, chat, documents, hostel, lms, payments, profile, staff

router = APIRouter(
    responses={
        400: {"description": "Bad Request"},
        401: {"description": "Unauthorized"},
        403: {"description": "Forbidden"},
        404: {"description": "Not Found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal Server Error"},
    }
)

router.include_router(profile.router, tags=["Student Profile"])
router.include_router(documents.router, tags=["Documents"])
router.include_router(chat.router, tags=["Chat Assistant"])
router.include_router(payments.router, tags=["Fee Payments"])
router.include_router(hostel.router, tags=["Hostel"])
router.include_router(lms.router, tags=["LMS"])
router.include_router(staff.router, tags=["Staff Review"])
router.include_router(admin.router, tags=["Admin Management"])


@router.get("/health", tags=["Health"])
def health() -> dict:
    return {"status": "ok"}
