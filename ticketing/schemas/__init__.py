from ticketing.schemas.event import (
    EventCreate, EventStatusUpdate, EventResponse, EventListResponse,
    AvailabilityResponse, QuoteRequest,
)
from ticketing.schemas.enrollment import (
    CheckoutRequest, CheckoutResponse, EnrollmentResponse, QuoteResponse, PaymentRecord,
)
from ticketing.schemas.vote import VoteSummaryResponse, VoteResponse
from ticketing.schemas.profile import ProfileResponse, ProfileUpdate

__all__ = [
    "EventCreate", "EventStatusUpdate", "EventResponse", "EventListResponse",
    "AvailabilityResponse", "QuoteRequest",
    "CheckoutRequest", "CheckoutResponse", "EnrollmentResponse", "QuoteResponse", "PaymentRecord",
    "VoteSummaryResponse", "VoteResponse",
    "ProfileResponse", "ProfileUpdate",
]
