"""Credential checks, login failure handling and the session principal."""

import logging

from fastapi import Depends, HTTPException, Request, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import crud
from .database import get_db
from .exceptions import (
    AccountDisabledError,
    AuthenticationError,
    BadCredentialsError,
)
from .models import User
from .schemas import FlowResult, Message, MessageType

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

#: Session key holding the email of the logged-in user.
SESSION_USER_KEY = "user_email"

LOGIN_URL = "/login"
LOGIN_SUCCESS_URL = "/user/profile"


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Compare a plain password with its hashed value."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # placeholder passwords of OAuth accounts are not hashes
        return False


def get_password_hash(password: str) -> str:
    """Generate a password hash using the configured context."""
    return pwd_context.hash(password)


def load_user_by_username(db: Session, username: str) -> User:
    """
    Look up the account behind a login attempt.

    Args:
        db (Session): Database session.
        username (str): Email typed into the login form.

    Raises:
        BadCredentialsError: If no user has that email.

    Returns:
        User: Matching user.
    """
    logger.info("Attempting to load user by email: %s", username)
    user = crud.get_user_by_email(db, username)
    if user is None:
        logger.error("User not found with email: %s", username)
        raise BadCredentialsError(f"User not found with email: {username}")
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """
    Check form login credentials.

    The disabled check runs before the password check, so an unverified
    account is reported as disabled whatever password was typed.

    Raises:
        AccountDisabledError: If the account has not been enabled yet.
        BadCredentialsError: If the email is unknown or the password is wrong.
    """
    user = load_user_by_username(db, email)
    if not user.enabled:
        raise AccountDisabledError(user.email)
    if not verify_password(password, user.password):
        raise BadCredentialsError()
    return user


def on_authentication_failure(exc: AuthenticationError, email: str) -> FlowResult:
    """
    Decide where a failed login goes.

    Args:
        exc (AuthenticationError): Why the login failed.
        email (str): Email typed into the login form.

    Returns:
        FlowResult: ``/login`` with a warning for disabled accounts,
        ``/login?error=true`` without a message otherwise.
    """
    if isinstance(exc, AccountDisabledError):
        logger.warning("User attempted to log in while disabled: %s", email)
        return FlowResult(
            redirect_to=LOGIN_URL,
            message=Message(
                content="User is disabled, Email with verification link is sent on your email id !!",
                type=MessageType.red,
            ),
        )
    logger.error("Authentication failed: %s", exc)
    return FlowResult(redirect_to=f"{LOGIN_URL}?error=true")


def login_user(request: Request, email: str) -> None:
    """Store the authenticated principal in the session."""
    request.session[SESSION_USER_KEY] = email


def logout_user(request: Request) -> None:
    """Forget the principal and everything else kept in the session."""
    request.session.clear()


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    """Dependency returning the logged-in user, or ``None`` for visitors."""
    email = request.session.get(SESSION_USER_KEY)
    if not email:
        return None
    return crud.get_user_by_email(db, email)


def get_current_user(user: User | None = Depends(get_optional_user)) -> User:
    """Dependency that requires a logged-in user and redirects to login otherwise."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            headers={"Location": LOGIN_URL},
        )
    return user
