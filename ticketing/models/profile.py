"""
User profile kept alongside the auth provider's identity.

The id is the auth provider's user id; there are no credentials here.
"""

from sqlalchemy import Column, String, CheckConstraint

from ticketing.db.base import Base, TimestampMixin

ROLES = ("superadmin", "admin", "user")
ORGANIZER_ROLES = ("superadmin", "admin")


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    role = Column(String(20), nullable=False, default="user")
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    phone = Column(String(32), nullable=True)

    __table_args__ = (
        CheckConstraint("role IN ('superadmin', 'admin', 'user')", name="check_profile_role"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"
