"""Database models for the Smart Contact Manager.

This module defines SQLAlchemy ORM models used by the application.
"""

import enum

from sqlalchemy import (
    Column,
    String,
    Text,
    Boolean,
    Enum,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from .database import Base

ROLE_USER = "ROLE_USER"


class Provider(str, enum.Enum):
    """Source that authenticated a user."""

    SELF = "SELF"
    GOOGLE = "GOOGLE"
    GITHUB = "GITHUB"
    LINKEDIN = "LINKEDIN"


class User(Base):
    """
    SQLAlchemy model representing an application user.

    Self-registered users start disabled until their email is verified.
    Users created from an OAuth2 login start enabled and verified and
    carry a placeholder password.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=True)
    about = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)
    profile_pic = Column(String(1000), nullable=True)
    enabled = Column(Boolean, default=False, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    phone_verified = Column(Boolean, default=False, nullable=False)
    roles = Column(String(255), default=ROLE_USER, nullable=False)
    provider = Column(Enum(Provider), default=Provider.SELF, nullable=False)
    provider_user_id = Column(String(255), nullable=True)
    email_token = Column(String(255), nullable=True, index=True)

    #: Contacts owned by the user
    contacts = relationship(
        "Contact",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def role_list(self) -> list[str]:
        """Role tags stored as a comma separated column."""
        return [role for role in (self.roles or "").split(",") if role]

    @role_list.setter
    def role_list(self, value: list[str]) -> None:
        self.roles = ",".join(value)


class Contact(Base):
    """
    SQLAlchemy model representing an address-book entry.

    Each contact belongs to exactly one user, assigned when the
    contact is created.
    """

    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    phone_number = Column(String(20), nullable=True, index=True)
    address = Column(String(1000), nullable=True)
    description = Column(Text, nullable=True)
    favorite = Column(Boolean, default=False, nullable=False)
    picture = Column(String(1000), nullable=True)
    cloudinary_image_public_id = Column(String(255), nullable=True)
    website_link = Column(String(1000), nullable=True)
    linked_in_link = Column(String(1000), nullable=True)

    #: Identifier of the owning user
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    #: Reference to the owning User object
    user = relationship("User", back_populates="contacts")
