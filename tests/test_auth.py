import pytest
from fastapi import status

from contact_manager.exceptions import (
    AccountDisabledError,
    BadCredentialsError,
)
from contact_manager.models import User
from contact_manager.schemas import MessageType
from contact_manager.security import (
    authenticate,
    get_password_hash,
    on_authentication_failure,
    verify_password,
)
from contact_manager.services import AuthService

from conftest import create_user, login


def test_password_hashing_roundtrip():
    password = "secret123"
    hashed = get_password_hash(password)
    assert hashed != password
    assert verify_password(password, hashed)


def test_placeholder_password_never_matches():
    assert not verify_password("dummy", "dummy")
    assert not verify_password("anything", None)


def test_authenticate_checks_disabled_before_password(db_session):
    create_user(db_session, email="off@example.com", enabled=False)
    with pytest.raises(AccountDisabledError):
        authenticate(db_session, "off@example.com", "wrong-password")


def test_authenticate_rejects_unknown_email_and_wrong_password(db_session):
    create_user(db_session, email="on@example.com")
    with pytest.raises(BadCredentialsError):
        authenticate(db_session, "nobody@example.com", "secret123")
    with pytest.raises(BadCredentialsError):
        authenticate(db_session, "on@example.com", "wrong-password")
    assert authenticate(db_session, "on@example.com", "secret123").email == "on@example.com"


def test_failure_handler_branches():
    disabled = on_authentication_failure(AccountDisabledError("a@x.com"), "a@x.com")
    assert disabled.redirect_to == "/login"
    assert disabled.message.type == MessageType.red
    assert "disabled" in disabled.message.content

    generic = on_authentication_failure(BadCredentialsError(), "a@x.com")
    assert generic.redirect_to == "/login?error=true"
    assert generic.message is None


def test_login_and_profile(client, db_session):
    create_user(db_session, email="login@example.com", name="Login User")
    login(client, "login@example.com")

    profile = client.get("/user/profile")
    assert profile.status_code == status.HTTP_200_OK
    assert "Login User" in profile.text


def test_login_disabled_user_shows_message(client, db_session):
    create_user(db_session, email="disabled@example.com", enabled=False)
    response = client.post(
        "/authenticate",
        data={"email": "disabled@example.com", "password": "secret123"},
        follow_redirects=False,
    )
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/login"

    page = client.get("/login")
    assert "User is disabled" in page.text
    # flash messages are shown once
    assert "User is disabled" not in client.get("/login").text


def test_login_bad_credentials_redirects_with_error(client, db_session):
    create_user(db_session, email="bad@example.com")
    response = client.post(
        "/authenticate",
        data={"email": "bad@example.com", "password": "nope-nope"},
        follow_redirects=False,
    )
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/login?error=true"


def test_user_pages_require_login(client, db_session):
    response = client.get("/user/profile", follow_redirects=False)
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/login"


def test_logout_clears_session(client, db_session):
    create_user(db_session, email="bye@example.com")
    login(client, "bye@example.com")

    response = client.get("/do-logout", follow_redirects=False)
    assert response.headers["location"] == "/login?logout=true"
    assert client.get("/user/dashboard", follow_redirects=False).status_code == 303


def test_verify_email_token_state_machine(db_session):
    user = create_user(db_session, email="verify@example.com", enabled=False)
    service = AuthService(db_session)

    wrong = service.verify_email_token("not-the-token")
    assert wrong.success is False
    assert wrong.message.type == MessageType.red
    db_session.refresh(user)
    assert user.enabled is False

    ok = service.verify_email_token(user.email_token)
    assert ok.success is True
    db_session.refresh(user)
    assert user.enabled is True
    assert user.email_verified is True

    # tokens are not consumed, so replaying one still succeeds
    assert service.verify_email_token(user.email_token).success is True


def test_verify_email_route(client, db_session):
    user = create_user(db_session, email="route@example.com", enabled=False)

    bad = client.get("/auth/verify-email?token=unknown")
    assert bad.status_code == status.HTTP_400_BAD_REQUEST
    assert "Token is not associated with user" in bad.text

    good = client.get(f"/auth/verify-email?token={user.email_token}")
    assert good.status_code == status.HTTP_200_OK
    assert "Your email is verified" in good.text


def test_register_verify_login_end_to_end(client, db_session, mailer):
    response = client.post(
        "/do-register",
        data={
            "name": "Ann",
            "email": "ann@x.com",
            "password": "secret1",
            "about": "hi",
            "phoneNumber": "1234567890",
        },
        follow_redirects=False,
    )
    assert response.status_code == status.HTTP_303_SEE_OTHER
    assert response.headers["location"] == "/register"
    assert "Registration Successful" in client.get("/register").text

    user = db_session.query(User).filter_by(email="ann@x.com").one()
    assert user.enabled is False
    assert user.email_token
    assert user.password != "secret1"

    assert len(mailer.sent) == 1
    to, subject, body = mailer.sent[0]
    assert to == "ann@x.com"
    assert f"/auth/verify-email?token={user.email_token}" in body

    verify = client.get(f"/auth/verify-email?token={user.email_token}")
    assert verify.status_code == status.HTTP_200_OK
    assert "Your email is verified" in verify.text
    db_session.refresh(user)
    assert user.enabled is True
    assert user.email_verified is True

    login(client, "ann@x.com", "secret1")
