"""
Voting eligibility for undefined (crowd-sourced) events.

Per (event, user) there are three states: not_voted_ineligible,
not_voted_eligible and voted. Eligibility comes from the effective voting
status:

  - an explicit `voting_status` on the event always wins;
  - otherwise it is derived from the window: open inside
    [voting_start, voting_end], closed after voting_end, and unset before
    voting_start or when no window exists.

One vote per user is enforced by the (event_id, user_id) unique constraint;
a violation is reported as ALREADY_VOTED, never as an error.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.errors import NotFoundError
from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_vote
from ticketing.core.security import CurrentUser
from ticketing.db.base import as_utc, utcnow
from ticketing.db.session import store_operation
from ticketing.models.event import Event
from ticketing.models.vote import Vote

logger = get_logger(__name__)


class VotingState(str, Enum):
    NOT_VOTED_INELIGIBLE = "not_voted_ineligible"
    NOT_VOTED_ELIGIBLE = "not_voted_eligible"
    VOTED = "voted"


class VoteOutcome(str, Enum):
    RECORDED = "recorded"
    ALREADY_VOTED = "already_voted"
    INELIGIBLE = "ineligible"


@dataclass(frozen=True)
class VoteResult:
    outcome: VoteOutcome
    votes_count: int


def effective_voting_status(event: Event, now: Optional[datetime] = None) -> Optional[str]:
    if event.voting_status:
        return event.voting_status

    start = as_utc(event.voting_start)
    end = as_utc(event.voting_end)
    if start is None and end is None:
        return None

    now = as_utc(now) if now else utcnow()
    if start is not None and now < start:
        return None
    if end is not None and now > end:
        return "closed"
    return "open"


def is_voting_open(event: Event, now: Optional[datetime] = None) -> bool:
    return event.is_undefined and effective_voting_status(event, now) == "open"


def pricing_visible(event: Event, now: Optional[datetime] = None) -> bool:
    """Undefined events reveal their price only once voting has closed."""
    if not event.is_undefined:
        return True
    return effective_voting_status(event, now) == "closed"


def voting_state(event: Event, has_voted: bool, now: Optional[datetime] = None) -> VotingState:
    if has_voted:
        return VotingState.VOTED
    if is_voting_open(event, now):
        return VotingState.NOT_VOTED_ELIGIBLE
    return VotingState.NOT_VOTED_INELIGIBLE


async def _get_votable_event(db: AsyncSession, event_id: str) -> Event:
    event = await db.get(Event, event_id)
    if event is None or event.status == "draft":
        raise NotFoundError(f"Event {event_id} not found")
    return event


async def has_user_voted(db: AsyncSession, event_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(Vote.id).where(Vote.event_id == event_id, Vote.user_id == user_id)
    )
    return result.first() is not None


async def count_votes(db: AsyncSession, event_id: str) -> int:
    result = await db.execute(select(func.count(Vote.id)).where(Vote.event_id == event_id))
    return result.scalar_one()


@store_operation("can_vote")
async def can_vote(
    db: AsyncSession,
    event_id: str,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> bool:
    """Window/status check, narrowed to a user when one is given."""
    event = await _get_votable_event(db, event_id)
    if not is_voting_open(event, now):
        return False
    if user_id is None:
        return True
    return not await has_user_voted(db, event_id, user_id)


@store_operation("voting_state")
async def get_voting_state(
    db: AsyncSession,
    event_id: str,
    user: Optional[CurrentUser],
    now: Optional[datetime] = None,
) -> tuple[Event, int, Optional[VotingState]]:
    event = await _get_votable_event(db, event_id)
    votes = await count_votes(db, event_id)
    if user is None:
        return event, votes, None
    voted = await has_user_voted(db, event_id, user.user_id)
    return event, votes, voting_state(event, voted, now)


@store_operation("cast_vote")
async def cast_vote(
    db: AsyncSession,
    event_id: str,
    user: CurrentUser,
    now: Optional[datetime] = None,
) -> VoteResult:
    event = await _get_votable_event(db, event_id)

    if await has_user_voted(db, event_id, user.user_id):
        record_vote(VoteOutcome.ALREADY_VOTED.value)
        return VoteResult(VoteOutcome.ALREADY_VOTED, await count_votes(db, event_id))

    if not is_voting_open(event, now):
        logger.info("vote_rejected_ineligible", event_id=event_id, user_id=user.user_id)
        record_vote(VoteOutcome.INELIGIBLE.value)
        return VoteResult(VoteOutcome.INELIGIBLE, await count_votes(db, event_id))

    db.add(Vote(event_id=event_id, user_id=user.user_id))
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race against the same user's concurrent vote
        await db.rollback()
        record_vote(VoteOutcome.ALREADY_VOTED.value)
        return VoteResult(VoteOutcome.ALREADY_VOTED, await count_votes(db, event_id))

    logger.info("vote_recorded", event_id=event_id, user_id=user.user_id)
    record_vote(VoteOutcome.RECORDED.value)
    return VoteResult(VoteOutcome.RECORDED, await count_votes(db, event_id))
