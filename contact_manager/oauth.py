"""OAuth2 social login with Google and GitHub.

The flow mirrors the usual authorization code grant:

1. ``authorization_url`` sends the browser to the provider with a signed
   ``state`` value that is also kept in the session.
2. The provider redirects back with a ``code``; ``fetch_attributes``
   exchanges it for an access token and reads the user's attributes.
3. ``on_oauth_success`` maps the attributes to a ``User`` and creates
   the account on first login.
"""

import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable
from urllib.parse import urlencode

import requests
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from . import crud
from .core import get_settings
from .exceptions import OAuthError, UnsupportedProviderError
from .models import ROLE_USER, Provider, User
from .schemas import FlowResult
from .security import LOGIN_SUCCESS_URL

logger = logging.getLogger(__name__)

#: Session key holding the state issued for the pending authorization.
SESSION_STATE_KEY = "oauth_state"

OAUTH_PLACEHOLDER_PASSWORD = "dummy"

REQUEST_TIMEOUT = 10

PROVIDER_LABELS = {Provider.GOOGLE: "Google", Provider.GITHUB: "GitHub"}


@dataclass
class OAuthProfile:
    """Provider independent view of a social login."""

    provider: Provider
    email: str
    name: str
    picture: str | None
    provider_user_id: str


def _google_profile(attributes: dict[str, Any]) -> OAuthProfile:
    return OAuthProfile(
        provider=Provider.GOOGLE,
        email=str(attributes["email"]),
        name=str(attributes["name"]),
        picture=attributes.get("picture"),
        provider_user_id=str(attributes["sub"]),
    )


def _github_profile(attributes: dict[str, Any]) -> OAuthProfile:
    login = str(attributes["login"])
    email = attributes.get("email")
    return OAuthProfile(
        provider=Provider.GITHUB,
        # private GitHub emails are not returned by /user
        email=str(email) if email else f"{login}@gmail.com",
        name=login,
        picture=attributes.get("avatar_url"),
        provider_user_id=str(attributes["id"]),
    )


@dataclass
class OAuthClient:
    """Registration of the application with one provider."""

    registration_id: str
    provider: Provider
    authorize_url: str
    token_url: str
    userinfo_url: str
    scope: str
    extract: Callable[[dict[str, Any]], OAuthProfile]

    @property
    def client_id(self) -> str:
        return getattr(get_settings(), f"{self.provider.value}_CLIENT_ID")

    @property
    def client_secret(self) -> str:
        return getattr(get_settings(), f"{self.provider.value}_CLIENT_SECRET")

    @property
    def redirect_uri(self) -> str:
        return f"{get_settings().BASE_URL}/login/oauth2/code/{self.registration_id}"


CLIENTS: dict[str, OAuthClient] = {
    "google": OAuthClient(
        registration_id="google",
        provider=Provider.GOOGLE,
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        userinfo_url="https://openidconnect.googleapis.com/v1/userinfo",
        scope="openid profile email",
        extract=_google_profile,
    ),
    "github": OAuthClient(
        registration_id="github",
        provider=Provider.GITHUB,
        authorize_url="https://github.com/login/oauth/authorize",
        token_url="https://github.com/login/oauth/access_token",
        userinfo_url="https://api.github.com/user",
        scope="read:user user:email",
        extract=_github_profile,
    ),
}


def get_client(registration_id: str) -> OAuthClient:
    """
    Return the client registered under ``registration_id``.

    Raises:
        UnsupportedProviderError: For LinkedIn and any unknown id.
    """
    client = CLIENTS.get(registration_id.lower())
    if client is None:
        raise UnsupportedProviderError(registration_id)
    return client


def extract_profile(registration_id: str, attributes: dict[str, Any]) -> OAuthProfile:
    """Map raw provider attributes to an ``OAuthProfile``."""
    return get_client(registration_id).extract(attributes)


def create_state(registration_id: str) -> str:
    """Sign a short-lived state value bound to one provider."""
    settings = get_settings()
    expire = datetime.utcnow() + timedelta(minutes=settings.OAUTH_STATE_EXPIRE_MINUTES)
    payload = {
        "sub": registration_id,
        "nonce": secrets.token_urlsafe(16),
        "exp": expire,
        "scope": "oauth_state",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_state(registration_id: str, state: str | None, expected: str | None) -> None:
    """
    Check the state returned by the provider.

    Raises:
        OAuthError: If the state is missing, differs from the one issued
            to this session, is expired or belongs to another provider.
    """
    if not state or state != expected:
        raise OAuthError("OAuth2 state mismatch")
    settings = get_settings()
    try:
        payload = jwt.decode(state, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as exc:
        raise OAuthError(f"Invalid OAuth2 state: {exc}") from exc
    if payload.get("scope") != "oauth_state" or payload.get("sub") != registration_id:
        raise OAuthError("OAuth2 state issued for another provider")


def authorization_url(client: OAuthClient, state: str) -> str:
    """Build the provider URL the browser is sent to."""
    params = {
        "client_id": client.client_id,
        "redirect_uri": client.redirect_uri,
        "response_type": "code",
        "scope": client.scope,
        "state": state,
    }
    return f"{client.authorize_url}?{urlencode(params)}"


def fetch_attributes(client: OAuthClient, code: str) -> dict[str, Any]:
    """
    Exchange an authorization code and read the user's attributes.

    Raises:
        OAuthError: If the provider rejects the code or the userinfo call.
    """
    token_resp = requests.post(
        client.token_url,
        data={
            "client_id": client.client_id,
            "client_secret": client.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": client.redirect_uri,
        },
        headers={"Accept": "application/json"},
        timeout=REQUEST_TIMEOUT,
    )
    if not token_resp.ok:
        raise OAuthError(
            f"Token exchange with {client.registration_id} failed: {token_resp.status_code}"
        )
    access_token = token_resp.json().get("access_token")
    if not access_token:
        raise OAuthError(f"No access token returned by {client.registration_id}")

    userinfo_resp = requests.get(
        client.userinfo_url,
        headers={
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        },
        timeout=REQUEST_TIMEOUT,
    )
    if not userinfo_resp.ok:
        raise OAuthError(
            f"Userinfo request to {client.registration_id} failed: {userinfo_resp.status_code}"
        )
    return userinfo_resp.json()


def on_oauth_success(
    db: Session, registration_id: str, attributes: dict[str, Any]
) -> tuple[User, FlowResult]:
    """
    Record a successful social login.

    A new account is created on the first login with a given email. On
    later logins, or when a password account already owns the email,
    the stored record is kept as is.

    Args:
        db (Session): Database session.
        registration_id (str): Provider the user logged in with.
        attributes (dict): Raw attributes returned by the provider.

    Raises:
        UnsupportedProviderError: If the provider has no attribute mapping.

    Returns:
        tuple[User, FlowResult]: The stored user and the profile redirect.
    """
    logger.info("Authorized Client Registration ID: %s", registration_id)
    profile = extract_profile(registration_id, attributes)

    user = User(
        id=str(uuid.uuid4()),
        name=profile.name,
        email=profile.email,
        password=OAUTH_PLACEHOLDER_PASSWORD,
        about=f"This account is created using {PROVIDER_LABELS[profile.provider]}.",
        profile_pic=profile.picture,
        enabled=True,
        email_verified=True,
        phone_verified=False,
        roles=ROLE_USER,
        provider=profile.provider,
        provider_user_id=profile.provider_user_id,
    )

    existing = crud.get_user_by_email(db, user.email)
    if existing is None:
        existing = crud.save_user(db, user)
        logger.info("User saved: %s", user.email)
    else:
        logger.info("User already exists: %s", user.email)

    return existing, FlowResult(redirect_to=LOGIN_SUCCESS_URL)
