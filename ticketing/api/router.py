"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticketing.api.routes import documents, enrollments, events, profile, votes

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(events.router)
api_router.include_router(votes.router)
api_router.include_router(enrollments.router)
api_router.include_router(profile.router)
api_router.include_router(documents.router)
