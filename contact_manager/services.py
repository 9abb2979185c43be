"""Business rules for users, contacts and email verification.

Each service is built explicitly from a database session and its
collaborators. Routes receive them through the ``get_*_service``
dependencies, which tests override to swap collaborators.
"""

import logging
import uuid

from fastapi import Depends, UploadFile
from sqlalchemy.orm import Session

from . import crud
from .core import get_settings
from .database import get_db
from .exceptions import DuplicateEmailError, NotFoundError
from .images import ImageService, get_image_service
from .mail import EmailService, get_email_service, verification_link
from .models import ROLE_USER, Contact, Provider, User
from .schemas import (
    ContactForm,
    Message,
    MessageType,
    UserForm,
    VerificationResult,
)
from .security import get_password_hash

logger = logging.getLogger(__name__)

#: Search field names accepted from the search form, mapped to contact attributes.
SEARCH_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone_number",
}


def new_id() -> str:
    """Generate a server side identifier."""
    return str(uuid.uuid4())


class UserService:
    """Registration and maintenance of user accounts."""

    def __init__(self, db: Session, email_service: EmailService):
        self.db = db
        self.email_service = email_service

    def register_from_form(self, form: UserForm) -> User:
        """
        Register a self-managed account and send its verification email.

        The account starts disabled with a fresh email token; the email
        carries a link embedding that token.

        Args:
            form (UserForm): Validated registration form.

        Raises:
            DuplicateEmailError: If the email is already registered.

        Returns:
            User: Newly created user.
        """
        if self.exists_by_email(form.email):
            raise DuplicateEmailError(form.email)

        user = User(
            id=new_id(),
            name=form.name,
            email=form.email,
            password=get_password_hash(form.password),
            about=form.about,
            phone_number=form.phone_number,
            profile_pic=get_settings().DEFAULT_PROFILE_PIC,
            enabled=False,
            email_verified=False,
            phone_verified=False,
            roles=ROLE_USER,
            provider=Provider.SELF,
            email_token=new_id(),
        )
        user = crud.save_user(self.db, user)
        logger.info("Registered user %s", user.email)

        self.email_service.send_email(
            user.email,
            "Verify Account: Smart Contact Manager",
            verification_link(user.email_token),
        )
        return user

    def update(self, user: User) -> User:
        """
        Overwrite every profile field of a stored user.

        Raises:
            NotFoundError: If no user has ``user.id``.
        """
        existing = crud.get_user_by_id(self.db, user.id)
        if existing is None:
            raise NotFoundError("User not found")

        existing.name = user.name
        existing.email = user.email
        existing.password = user.password
        existing.about = user.about
        existing.phone_number = user.phone_number
        existing.profile_pic = user.profile_pic
        existing.enabled = user.enabled
        existing.email_verified = user.email_verified
        existing.phone_verified = user.phone_verified
        existing.provider = user.provider
        existing.provider_user_id = user.provider_user_id
        return crud.save_user(self.db, existing)

    def delete(self, user_id: str) -> None:
        """Delete a user, raising ``NotFoundError`` if absent."""
        user = crud.get_user_by_id(self.db, user_id)
        if user is None:
            raise NotFoundError("User not found")
        crud.delete_user(self.db, user)

    def exists_by_id(self, user_id: str) -> bool:
        return crud.get_user_by_id(self.db, user_id) is not None

    def exists_by_email(self, email: str) -> bool:
        return crud.get_user_by_email(self.db, email) is not None

    def get_by_id(self, user_id: str) -> User | None:
        return crud.get_user_by_id(self.db, user_id)

    def get_by_email(self, email: str) -> User | None:
        return crud.get_user_by_email(self.db, email)

    def list_all(self) -> list[User]:
        return crud.list_users(self.db)


class ContactService:
    """Address book operations."""

    def __init__(self, db: Session, image_service: ImageService):
        self.db = db
        self.image_service = image_service

    def _upload(self, contact: Contact, image: UploadFile | None) -> None:
        if image is None or not image.filename:
            logger.debug("No picture supplied for contact %s", contact.id)
            return
        public_id = new_id()
        contact.picture = self.image_service.upload_image(image.file, public_id)
        contact.cloudinary_image_public_id = public_id

    def create_from_form(
        self, form: ContactForm, owner_email: str, image: UploadFile | None = None
    ) -> Contact:
        """
        Create a contact for the user with the given email.

        Args:
            form (ContactForm): Validated contact form.
            owner_email (str): Email of the owning user.
            image (UploadFile | None): Optional picture to upload first.

        Raises:
            NotFoundError: If no user has ``owner_email``.

        Returns:
            Contact: Persisted contact.
        """
        user = crud.get_user_by_email(self.db, owner_email)
        if user is None:
            raise NotFoundError(f"User not found with email {owner_email}")

        contact = Contact(
            id=new_id(),
            name=form.name,
            email=form.email,
            phone_number=form.phone_number,
            address=form.address,
            description=form.description,
            favorite=form.favorite,
            website_link=form.website_link,
            linked_in_link=form.linked_in_link,
            user_id=user.id,
        )
        self._upload(contact, image)
        return crud.save_contact(self.db, contact)

    def get_by_id(self, contact_id: str) -> Contact:
        """Return a contact, raising ``NotFoundError`` if absent."""
        contact = crud.get_contact(self.db, contact_id)
        if contact is None:
            raise NotFoundError(f"Contact not found with given id {contact_id}")
        return contact

    def update(
        self, contact_id: str, form: ContactForm, image: UploadFile | None = None
    ) -> Contact:
        """
        Overwrite a contact from an edit form.

        The stored picture is only replaced when a new image is supplied.

        Raises:
            NotFoundError: If the contact does not exist.
        """
        contact = self.get_by_id(contact_id)
        contact.name = form.name
        contact.email = form.email
        contact.phone_number = form.phone_number
        contact.address = form.address
        contact.description = form.description
        contact.favorite = form.favorite
        contact.website_link = form.website_link
        contact.linked_in_link = form.linked_in_link
        self._upload(contact, image)
        return crud.save_contact(self.db, contact)

    apply_form = update

    def delete(self, contact_id: str) -> None:
        """Delete a contact, raising ``NotFoundError`` if absent."""
        contact = self.get_by_id(contact_id)
        crud.delete_contact(self.db, contact)

    def list_all(self) -> list[Contact]:
        return crud.list_contacts(self.db)

    def list_by_owner_id(self, owner_id: str) -> list[Contact]:
        return crud.list_contacts_by_user_id(self.db, owner_id)

    def page_by_owner(
        self,
        user: User,
        page: int = 0,
        size: int = 10,
        sort_by: str = "name",
        direction: str = "asc",
    ) -> crud.Page[Contact]:
        return crud.page_contacts_by_user(self.db, user, page, size, sort_by, direction)

    def search(
        self,
        field: str,
        keyword: str,
        user: User,
        page: int = 0,
        size: int = 10,
        sort_by: str = "name",
        direction: str = "asc",
    ) -> crud.Page[Contact]:
        """
        Search the user's contacts by name, email or phone.

        The field name is matched case-insensitively; any other field
        yields an empty page.
        """
        attribute = SEARCH_FIELDS.get((field or "").lower())
        if attribute is None:
            logger.info("Ignoring search on unknown field %r", field)
            return crud.Page(number=page, size=size)
        return crud.search_contacts(
            self.db, user, attribute, keyword or "", page, size, sort_by, direction
        )

    def form_for_edit(self, contact_id: str) -> ContactForm:
        """Prefill an edit form from a stored contact."""
        contact = self.get_by_id(contact_id)
        return ContactForm.model_construct(
            name=contact.name,
            email=contact.email,
            phone_number=contact.phone_number,
            address=contact.address,
            description=contact.description,
            favorite=contact.favorite,
            website_link=contact.website_link,
            linked_in_link=contact.linked_in_link,
            picture=contact.picture,
        )


class AuthService:
    """Email verification."""

    FAILURE = "Email not verified! Token is not associated with user."

    def __init__(self, db: Session):
        self.db = db

    def verify_email_token(self, token: str) -> VerificationResult:
        """
        Enable the account holding ``token``.

        Tokens are neither consumed nor expired, so verifying twice with
        the same token succeeds twice.

        Args:
            token (str): Token from the verification link.

        Returns:
            VerificationResult: Success flag and the message to show.
        """
        user = crud.get_user_by_email_token(self.db, token)
        if user is None:
            logger.warning(
                "Email not verified! No user found with the provided token: %s", token
            )
            return VerificationResult(
                False, Message(content=self.FAILURE, type=MessageType.red)
            )

        if user.email_token != token:
            logger.warning(
                "Email not verified! Token is not associated with user: %s", user.email
            )
            return VerificationResult(
                False, Message(content=self.FAILURE, type=MessageType.red)
            )

        user.email_verified = True
        user.enabled = True
        crud.save_user(self.db, user)
        logger.info("Email verified for user: %s", user.email)
        return VerificationResult(
            True,
            Message(
                content="Your email is verified. Now you can log in.",
                type=MessageType.green,
            ),
        )


def get_user_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> UserService:
    return UserService(db, email_service)


def get_contact_service(
    db: Session = Depends(get_db),
    image_service: ImageService = Depends(get_image_service),
) -> ContactService:
    return ContactService(db, image_service)


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    return AuthService(db)
