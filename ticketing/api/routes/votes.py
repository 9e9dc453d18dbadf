"""
Voting endpoints for undefined events.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ticketing.core.security import CurrentUser, get_current_user, get_optional_user
from ticketing.db.session import get_db
from ticketing.schemas.vote import VoteResponse, VoteSummaryResponse
from ticketing.services.voting import VoteOutcome, cast_vote, effective_voting_status, get_voting_state

router = APIRouter(prefix="/events", tags=["Voting"])

VOTE_MESSAGES = {
    VoteOutcome.RECORDED: "Your vote has been recorded",
    VoteOutcome.ALREADY_VOTED: "You have already voted for this event",
    VoteOutcome.INELIGIBLE: "Voting is not open for this event",
}


@router.get("/{event_id}/votes", response_model=VoteSummaryResponse)
async def vote_summary_endpoint(
    event_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Vote count, plus the caller's own voting state when signed in."""
    event, votes, state = await get_voting_state(db, event_id, user)
    return VoteSummaryResponse(
        event_id=event.id,
        votes_count=votes,
        voting_status=effective_voting_status(event) if event.is_undefined else None,
        state=state.value if state else None,
    )


@router.post("/{event_id}/votes", response_model=VoteResponse)
async def cast_vote_endpoint(
    event_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Duplicate and out-of-window votes are reported in `outcome`, not as errors."""
    result = await cast_vote(db, event_id, user)
    return VoteResponse(
        event_id=event_id,
        outcome=result.outcome.value,
        message=VOTE_MESSAGES[result.outcome],
        votes_count=result.votes_count,
    )
