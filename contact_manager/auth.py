"""Login, logout, email verification and OAuth2 routes."""

import logging

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from . import oauth
from .database import get_db
from .exceptions import AuthenticationError, OAuthError
from .limits import login_limiter
from .schemas import FlowResult
from .security import (
    LOGIN_SUCCESS_URL,
    authenticate,
    login_user,
    logout_user,
    on_authentication_failure,
)
from .services import AuthService, get_auth_service
from .web import View, flash, get_view, redirect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/authenticate", dependencies=[Depends(login_limiter)])
def do_login(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    """Check form credentials and start a session on success."""
    try:
        user = authenticate(db, email, password)
    except AuthenticationError as exc:
        return redirect(request, on_authentication_failure(exc, email))

    login_user(request, user.email)
    logger.info("User logged in: %s", user.email)
    return redirect(request, FlowResult(redirect_to=LOGIN_SUCCESS_URL))


@router.get("/do-logout")
def do_logout(request: Request):
    """End the session."""
    logout_user(request)
    return redirect(request, FlowResult(redirect_to="/login?logout=true"))


@router.get("/auth/verify-email", response_class=HTMLResponse)
def verify_email(
    request: Request,
    token: str,
    auth_service: AuthService = Depends(get_auth_service),
    view: View = Depends(get_view),
):
    """Verify an email address from the link sent at registration."""
    result = auth_service.verify_email_token(token)
    flash(request, result.message)
    if result.success:
        return view("success_page.html")
    return view("error_page.html", status_code=status.HTTP_400_BAD_REQUEST)


@router.get("/oauth2/authorization/{registration_id}")
def oauth_authorize(request: Request, registration_id: str):
    """Send the browser to the provider's consent screen."""
    client = oauth.get_client(registration_id)
    state = oauth.create_state(client.registration_id)
    request.session[oauth.SESSION_STATE_KEY] = state
    return RedirectResponse(
        oauth.authorization_url(client, state),
        status_code=status.HTTP_302_FOUND,
    )


@router.get("/login/oauth2/code/{registration_id}")
def oauth_callback(
    request: Request,
    registration_id: str,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
):
    """Finish a social login started by ``oauth_authorize``."""
    expected = request.session.pop(oauth.SESSION_STATE_KEY, None)
    client = oauth.get_client(registration_id)
    if error or not code:
        raise OAuthError(f"{registration_id} denied the authorization: {error}")
    oauth.verify_state(client.registration_id, state, expected)

    attributes = oauth.fetch_attributes(client, code)
    user, result = oauth.on_oauth_success(db, client.registration_id, attributes)
    login_user(request, user.email)
    return redirect(request, result)
