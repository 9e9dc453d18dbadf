from ticketing.models.profile import Profile
from ticketing.models.event import Event
from ticketing.models.enrollment import Enrollment
from ticketing.models.ticket import Ticket
from ticketing.models.vote import Vote

__all__ = ["Profile", "Event", "Enrollment", "Ticket", "Vote"]
