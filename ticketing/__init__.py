"""Event ticketing service: bookings, voting and PDF documents."""

__version__ = "1.0.0"
