"""
The caller's own profile.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.security import CurrentUser, get_current_user
from ticketing.db.session import get_db
from ticketing.schemas.profile import ProfileResponse, ProfileUpdate
from ticketing.services.profile_service import get_or_create_profile, update_profile

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile_endpoint(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """First access creates an empty profile with the `user` role."""
    return await get_or_create_profile(db, user)


@router.patch("", response_model=ProfileResponse)
async def update_profile_endpoint(
    updates: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await update_profile(db, user, updates)
