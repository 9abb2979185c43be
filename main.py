"""
Main application entry point for the Smart Contact Manager.

This module initializes the FastAPI application, sets up session and
CORS middleware, maps application errors to responses, initializes the
rate limiter and includes the routers for pages, authentication, user
pages, contacts and the JSON API.

Modules:
- FastAPI: Web framework
- SessionMiddleware: Signed cookie sessions (principal, flash messages)
- CORSMiddleware: Middleware for handling CORS
- contact_manager.limits: Rate limiter backed by Redis or fakeredis
- contact_manager.database: Database engine
- contact_manager.models: SQLAlchemy models
- contact_manager.pages / auth / users / contacts / api: Routers
- contact_manager.core: Application settings and logging
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from contact_manager.database import engine
from contact_manager import models, pages, contacts, api
from contact_manager.auth import router as auth_router
from contact_manager.users import router as users_router
from contact_manager.core import configure_logging, get_settings
from contact_manager.exceptions import (
    ContactManagerError,
    ImageUploadError,
    InvalidQueryError,
    NotFoundError,
    OAuthError,
    UnsupportedProviderError,
)
from contact_manager.limits import init_rate_limiter
from contact_manager.schemas import Message, MessageType
from contact_manager.web import templates

configure_logging()
logger = logging.getLogger(__name__)

# Create tables (for development only)
models.Base.metadata.create_all(bind=engine)

settings = get_settings()

# Initialize FastAPI application
app = FastAPI(title="Smart Contact Manager")

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(SessionMiddleware, secret_key=settings.SECRET_KEY)

ERROR_STATUS = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidQueryError: status.HTTP_400_BAD_REQUEST,
    UnsupportedProviderError: status.HTTP_400_BAD_REQUEST,
    ImageUploadError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.exception_handler(OAuthError)
async def oauth_error_handler(request: Request, exc: OAuthError):
    """Failed social logins go back to the login page like failed form logins."""
    logger.error("OAuth2 login failed: %s", exc)
    return RedirectResponse("/login?error=true", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(ContactManagerError)
async def application_error_handler(request: Request, exc: ContactManagerError):
    """
    Render application errors.

    JSON API callers get ``{"detail": ...}``; browsers get the error page.
    """
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    if request.url.path.startswith("/api/"):
        return JSONResponse({"detail": exc.user_message}, status_code=status_code)
    return templates.TemplateResponse(
        request,
        "error_page.html",
        {
            "message": Message(content=exc.user_message, type=MessageType.red),
            "logged_in_user": None,
        },
        status_code=status_code,
    )


@app.on_event("startup")
async def startup_event():
    """
    FastAPI startup event handler.

    Initializes the rate limiter with Redis backend, falling back to
    fakeredis if Redis is unavailable.
    """
    await init_rate_limiter()


# Include routers for application areas
app.include_router(pages.router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(contacts.router)
app.include_router(api.router)
