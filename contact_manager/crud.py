"""Persistence operations for users and contacts.

This module contains database interaction logic for user and contact
entities, isolated from the services and route handlers.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .exceptions import DuplicateEmailError, InvalidQueryError, InvalidSortFieldError

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Contact attributes accepted by the keyword search.
SEARCHABLE_FIELDS = ("name", "email", "phone_number")


@dataclass
class Page(Generic[T]):
    """One slice of an ordered result set.

    Attributes:
        items: Entities on this page.
        number: Zero based page index.
        size: Requested page size.
        total_elements: Number of matching entities across all pages.
    """

    items: list[T] = field(default_factory=list)
    number: int = 0
    size: int = 10
    total_elements: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size) if self.size else 0

    @property
    def is_first(self) -> bool:
        return self.number == 0

    @property
    def is_last(self) -> bool:
        return self.number + 1 >= self.total_pages

    @property
    def has_next(self) -> bool:
        return self.number + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.number > 0


def get_user_by_email(db: Session, email: str) -> models.User | None:
    """
    Retrieve a user by email address.

    Args:
        db (Session): Database session.
        email (str): User email.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.execute(
        select(models.User).where(models.User.email == email)
    ).scalar_one_or_none()


def get_user_by_id(db: Session, user_id: str) -> models.User | None:
    """
    Retrieve a user by primary key.

    Args:
        db (Session): Database session.
        user_id (str): User identifier.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.get(models.User, user_id)


def get_user_by_email_token(db: Session, token: str) -> models.User | None:
    """
    Retrieve the user holding an email verification token.

    Args:
        db (Session): Database session.
        token (str): Verification token.

    Returns:
        User | None: User if found, otherwise ``None``.
    """
    return db.execute(
        select(models.User).where(models.User.email_token == token)
    ).scalars().first()


def list_users(db: Session) -> list[models.User]:
    """Return every user."""
    return list(db.scalars(select(models.User)).all())


def save_user(db: Session, user: models.User) -> models.User:
    """
    Insert or update a user keyed by its id.

    Args:
        db (Session): Database session.
        user (User): User to persist.

    Raises:
        DuplicateEmailError: If the email is taken by another user.

    Returns:
        User: Persisted user instance.
    """
    user = db.merge(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Rejected duplicate email %s", user.email)
        raise DuplicateEmailError(user.email)
    db.refresh(user)
    return user


def delete_user(db: Session, user: models.User) -> None:
    """Delete a user and, through the cascade, their contacts."""
    db.delete(user)
    db.commit()


def get_contact(db: Session, contact_id: str) -> models.Contact | None:
    """
    Retrieve a single contact by id.

    Args:
        db (Session): Database session.
        contact_id (str): Contact identifier.

    Returns:
        Contact | None: Contact if found, otherwise ``None``.
    """
    return db.get(models.Contact, contact_id)


def list_contacts(db: Session) -> list[models.Contact]:
    """Return every contact of every user."""
    return list(db.scalars(select(models.Contact)).all())


def list_contacts_by_user_id(db: Session, user_id: str) -> list[models.Contact]:
    """Return all contacts owned by the given user id."""
    return list(
        db.scalars(
            select(models.Contact).where(models.Contact.user_id == user_id)
        ).all()
    )


def _order_by(sort_by: str, direction: str):
    column = models.Contact.__table__.columns.get(sort_by)
    if column is None:
        raise InvalidSortFieldError(sort_by)
    attribute = getattr(models.Contact, column.key)
    return attribute.desc() if direction == "desc" else attribute.asc()


def _page(db: Session, where: list, page: int, size: int, sort_by: str, direction: str):
    if page < 0:
        raise InvalidQueryError("Page index must not be less than zero")
    if size < 1:
        raise InvalidQueryError("Page size must not be less than one")
    order = _order_by(sort_by, direction)

    total = db.scalar(select(func.count()).select_from(models.Contact).where(*where)) or 0
    if page * size >= total:
        return Page(number=page, size=size, total_elements=total)
    items = db.scalars(
        select(models.Contact)
        .where(*where)
        .order_by(order, models.Contact.id)
        .offset(page * size)
        .limit(size)
    ).all()
    return Page(items=list(items), number=page, size=size, total_elements=total)


def page_contacts_by_user(
    db: Session,
    user: models.User,
    page: int = 0,
    size: int = 10,
    sort_by: str = "name",
    direction: str = "asc",
) -> Page[models.Contact]:
    """
    Retrieve one page of the given user's contacts.

    Args:
        db (Session): Database session.
        user (User): Contact owner.
        page (int): Zero based page index.
        size (int): Page size.
        sort_by (str): Contact attribute to order by.
        direction (str): ``"desc"`` for descending, anything else ascending.

    Raises:
        InvalidSortFieldError: If ``sort_by`` is not a contact attribute.

    Returns:
        Page[Contact]: Requested page, empty when out of range.
    """
    return _page(db, [models.Contact.user_id == user.id], page, size, sort_by, direction)


def search_contacts(
    db: Session,
    user: models.User,
    field_name: str,
    keyword: str,
    page: int = 0,
    size: int = 10,
    sort_by: str = "name",
    direction: str = "asc",
) -> Page[models.Contact]:
    """
    Retrieve one page of the user's contacts whose field contains a keyword.

    Matching is a case-insensitive substring match.

    Args:
        db (Session): Database session.
        user (User): Contact owner.
        field_name (str): One of ``SEARCHABLE_FIELDS``.
        keyword (str): Substring to look for.
        page (int): Zero based page index.
        size (int): Page size.
        sort_by (str): Contact attribute to order by.
        direction (str): ``"desc"`` for descending, anything else ascending.

    Raises:
        InvalidQueryError: If ``field_name`` is not searchable.
        InvalidSortFieldError: If ``sort_by`` is not a contact attribute.

    Returns:
        Page[Contact]: Requested page, empty when out of range.
    """
    if field_name not in SEARCHABLE_FIELDS:
        raise InvalidQueryError(f"Contacts cannot be searched by '{field_name}'")
    column = getattr(models.Contact, field_name)
    where = [
        models.Contact.user_id == user.id,
        column.icontains(keyword, autoescape=True),
    ]
    return _page(db, where, page, size, sort_by, direction)


def save_contact(db: Session, contact: models.Contact) -> models.Contact:
    """
    Insert or update a contact.

    Args:
        db (Session): Database session.
        contact (Contact): Contact to persist.

    Returns:
        Contact: Persisted contact.
    """
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def delete_contact(db: Session, contact: models.Contact) -> None:
    """
    Delete a contact from the database.

    Args:
        db (Session): Database session.
        contact (Contact): Contact to delete.
    """
    db.delete(contact)
    db.commit()
