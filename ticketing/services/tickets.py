"""
Ticket issuance.

Codes are generated once, at enrollment time, and stored. Reads always
return the stored codes.
"""

import secrets
import string

from ticketing.models.ticket import Ticket

CODE_PREFIX = "TKT-"
CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 7


def generate_ticket_code() -> str:
    return CODE_PREFIX + "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def issue_tickets(quantity: int, tier_name: str) -> list[Ticket]:
    """One ticket per unit, numbered from 1. Attach to the enrollment before flush."""
    codes: set[str] = set()
    while len(codes) < quantity:
        codes.add(generate_ticket_code())
    return [
        Ticket(position=position, code=code, tier_name=tier_name)
        for position, code in enumerate(sorted(codes), start=1)
    ]


def qr_payload(code: str) -> str:
    """What the scanner reads back at the door."""
    return code
