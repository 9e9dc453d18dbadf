"""
Pydantic schemas for voting.
"""

from typing import Optional
from pydantic import BaseModel


class VoteSummaryResponse(BaseModel):
    event_id: str
    votes_count: int
    voting_status: Optional[str]
    state: Optional[str] = None  # only for authenticated callers


class VoteResponse(BaseModel):
    event_id: str
    outcome: str  # recorded, already_voted, ineligible
    message: str
    votes_count: int
