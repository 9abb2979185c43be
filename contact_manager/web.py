"""Rendering and redirect helpers shared by the page routers."""

from pathlib import Path
from typing import Any

from fastapi import Depends, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from .models import User
from .schemas import FlowResult, Message
from .security import get_optional_user

#: Session key holding the pending flash message.
SESSION_MESSAGE_KEY = "message"

templates = Jinja2Templates(directory=Path(__file__).parent / "templates")


def flash(request: Request, message: Message | None) -> None:
    """Keep ``message`` in the session until the next rendered page."""
    if message is not None:
        request.session[SESSION_MESSAGE_KEY] = message.model_dump(mode="json")


def pop_message(request: Request) -> Message | None:
    raw = request.session.pop(SESSION_MESSAGE_KEY, None)
    return Message(**raw) if raw else None


def redirect(request: Request, result: FlowResult) -> RedirectResponse:
    """Apply a handler's ``FlowResult``: store its message, then redirect."""
    flash(request, result.message)
    return RedirectResponse(result.redirect_to, status_code=status.HTTP_303_SEE_OTHER)


class View:
    """Renders templates with the logged-in user and pending flash message.

    Used as a dependency so every page gets ``logged_in_user`` without
    each route asking for it.
    """

    def __init__(self, request: Request, logged_in_user: User | None):
        self.request = request
        self.logged_in_user = logged_in_user

    def __call__(self, template: str, status_code: int = 200, **context: Any):
        context["logged_in_user"] = self.logged_in_user
        context["message"] = pop_message(self.request)
        return templates.TemplateResponse(
            self.request, template, context, status_code=status_code
        )


def get_view(
    request: Request, logged_in_user: User | None = Depends(get_optional_user)
) -> View:
    return View(request, logged_in_user)
