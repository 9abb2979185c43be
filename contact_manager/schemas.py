"""Forms, messages and response schemas."""

import enum
import re
from dataclasses import dataclass
from typing import Optional, Self

from email_validator import EmailNotValidError, validate_email
from fastapi import Form
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_core import PydanticCustomError

PHONE_PATTERN = re.compile(r"^[0-9]{10}$")


def _required(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise PydanticCustomError("required", message)
    return value


def _email(value: Optional[str], required_message: str) -> str:
    value = _required(value, required_message)
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("email", "*invalid email.")
    return value


def form_errors(exc: ValidationError) -> dict[str, str]:
    """Map a validation error to the first message per form field."""
    errors: dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "__all__"
        errors.setdefault(field, error["msg"])
    return errors


class MessageType(str, enum.Enum):
    """Severity of a flash message, named after the color it renders in."""

    blue = "blue"
    green = "green"
    red = "red"
    yellow = "yellow"


class Message(BaseModel):
    """One-shot notice shown on the next rendered page."""

    content: str
    type: MessageType = MessageType.blue


@dataclass
class FlowResult:
    """Where a handler sends the browser next, and what to tell it."""

    redirect_to: str
    message: Message | None = None


@dataclass
class VerificationResult:
    """Outcome of an email token verification."""

    success: bool
    message: Message


class UserForm(BaseModel):
    """Registration form."""

    name: str = ""
    email: str = ""
    password: str = ""
    about: str = ""
    phone_number: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        value = _required(value, "*username is required.")
        if len(value) < 3:
            raise PydanticCustomError("min_length", "*min 3 characters required.")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _email(value, "*email is required.")

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        value = _required(value, "*password is required.")
        if len(value) < 6:
            raise PydanticCustomError("min_length", "*min 6 characters required.")
        return value

    @field_validator("about")
    @classmethod
    def check_about(cls, value: str) -> str:
        return _required(value, "*about is required.")

    @field_validator("phone_number")
    @classmethod
    def check_phone_number(cls, value: str) -> str:
        value = _required(value, "*mobile is required.")
        if len(value) != 10:
            raise PydanticCustomError("length", "*min 10 characters required.")
        return value

    @classmethod
    def raw_form(
        cls,
        name: str = Form(""),
        email: str = Form(""),
        password: str = Form(""),
        about: str = Form(""),
        phoneNumber: str = Form(""),
    ) -> dict:
        """Unvalidated form fields; the route validates them to render errors."""
        return {
            "name": name,
            "email": email,
            "password": password,
            "about": about,
            "phone_number": phoneNumber,
        }


class ContactForm(BaseModel):
    """Contact create/edit form.

    The uploaded picture travels next to the form as an ``UploadFile``;
    ``picture`` only carries the current URL when the form is prefilled
    for editing.
    """

    name: str = ""
    email: str = ""
    phone_number: str = ""
    address: str = ""
    description: Optional[str] = None
    favorite: bool = False
    website_link: Optional[str] = None
    linked_in_link: Optional[str] = None
    picture: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _required(value, "*name is required.")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _email(value, "*email is required.")

    @field_validator("phone_number")
    @classmethod
    def check_phone_number(cls, value: str) -> str:
        value = _required(value, "*phone number is required.")
        if not PHONE_PATTERN.match(value):
            raise PydanticCustomError("pattern", "*invalid phone number.")
        return value

    @field_validator("address")
    @classmethod
    def check_address(cls, value: str) -> str:
        return _required(value, "*address is required.")

    @classmethod
    def raw_form(
        cls,
        name: str = Form(""),
        email: str = Form(""),
        phoneNumber: str = Form(""),
        address: str = Form(""),
        description: Optional[str] = Form(None),
        favorite: bool = Form(False),
        websiteLink: Optional[str] = Form(None),
        linkedInLink: Optional[str] = Form(None),
    ) -> dict:
        """Unvalidated form fields; the route validates them to render errors."""
        return {
            "name": name,
            "email": email,
            "phone_number": phoneNumber,
            "address": address,
            "description": description,
            "favorite": favorite,
            "website_link": websiteLink or None,
            "linked_in_link": linkedInLink or None,
        }


class ContactSearchForm(BaseModel):
    """Search box on the contacts pages."""

    field: str = ""
    value: str = ""

    @classmethod
    def as_form(cls, field: str = "", value: str = "") -> Self:
        return cls(field=field, value=value)


class ContactOut(BaseModel):
    """Schema for returning contact as JSON."""

    id: str
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    favorite: bool = False
    picture: Optional[str] = None
    cloudinary_image_public_id: Optional[str] = None
    website_link: Optional[str] = None
    linked_in_link: Optional[str] = None

    class Config:
        from_attributes = True
