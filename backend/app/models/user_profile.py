"""
Marketplace profile for an identity-provider user.

The primary key is the identity provider's user id (the token subject), so
there is no local users table.
"""

from sqlalchemy import Column, String, Text, Uuid

from app.db.base import Base, TimestampMixin

# Fields that must be filled before a user may post or apply to gigs
REQUIRED_PROFILE_FIELDS = ("firstname", "surname", "country", "city")

COMPLETION_FIELDS = (
    "name", "firstname", "surname", "email", "phone",
    "country", "city", "bio", "profile_photo_url",
)


class UserProfile(Base, TimestampMixin):
    __tablename__ = "user_profiles"

    user_id = Column(Uuid, primary_key=True)
    name = Column(String(200), nullable=True)
    firstname = Column(String(100), nullable=True)
    surname = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    profile_photo_url = Column(String(1000), nullable=True)

    @property
    def is_complete(self) -> bool:
        return all((getattr(self, f) or "").strip() for f in REQUIRED_PROFILE_FIELDS)

    @property
    def completion_percentage(self) -> int:
        filled = sum(1 for f in COMPLETION_FIELDS if (getattr(self, f) or "").strip())
        return round(filled * 100 / len(COMPLETION_FIELDS))

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        full = " ".join(p for p in (self.firstname, self.surname) if p)
        return full or "Someone"

    @property
    def location_label(self) -> str:
        if self.city and self.country:
            return f"{self.city}, {self.country}"
        return self.country or "Not specified"

    def __repr__(self) -> str:
        return f"<UserProfile(user_id={self.user_id}, name={self.name})>"
