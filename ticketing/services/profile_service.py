"""
Profile service: display data kept next to the auth provider's identity.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.logging import get_logger
from ticketing.core.security import CurrentUser
from ticketing.db.session import store_operation
from ticketing.models.profile import Profile
from ticketing.schemas.profile import ProfileUpdate

logger = get_logger(__name__)


@store_operation("get_profile")
async def get_profile(db: AsyncSession, user_id: str) -> Optional[Profile]:
    return await db.get(Profile, user_id)


@store_operation("get_or_create_profile")
async def get_or_create_profile(db: AsyncSession, user: CurrentUser) -> Profile:
    profile = await db.get(Profile, user.user_id)
    if profile is None:
        profile = Profile(id=user.user_id, role="user")
        db.add(profile)
        await db.commit()
        logger.info("profile_created", user_id=user.user_id)
    return profile


@store_operation("update_profile")
async def update_profile(db: AsyncSession, user: CurrentUser, updates: ProfileUpdate) -> Profile:
    profile = await db.get(Profile, user.user_id)
    if profile is None:
        profile = Profile(id=user.user_id, role="user")
        db.add(profile)

    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    await db.commit()

    logger.info("profile_updated", user_id=user.user_id)
    return profile


def customer_name(user: CurrentUser, profile: Optional[Profile]) -> str:
    """Profile name first, then the token's name, then the email's local part."""
    if profile is not None and profile.full_name:
        return profile.full_name
    return user.display_name
