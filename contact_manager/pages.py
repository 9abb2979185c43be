"""Public pages and registration."""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import ValidationError

from .exceptions import DuplicateEmailError
from .limits import register_limiter
from .schemas import FlowResult, Message, MessageType, UserForm, form_errors
from .services import UserService, get_user_service
from .web import View, get_view, redirect

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


@router.get("/")
def index():
    """Send visitors to the home page."""
    return RedirectResponse("/home", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/home", response_class=HTMLResponse)
def home(view: View = Depends(get_view)):
    return view("index.html")


@router.get("/about", response_class=HTMLResponse)
def about(view: View = Depends(get_view)):
    return view("about.html")


@router.get("/services", response_class=HTMLResponse)
def services_page(view: View = Depends(get_view)):
    return view("services.html")


@router.get("/contact", response_class=HTMLResponse)
def contact_page(view: View = Depends(get_view)):
    return view("contact.html")


@router.get("/login", response_class=HTMLResponse)
def login_page(
    error: bool = False, logout: bool = False, view: View = Depends(get_view)
):
    """Login form; ``error`` and ``logout`` flags come from redirects."""
    return view("login.html", error=error, logout=logout)


@router.get("/register", response_class=HTMLResponse)
def register_page(view: View = Depends(get_view)):
    return view("register.html", form=UserForm(), errors={})


@router.post(
    "/do-register",
    response_class=HTMLResponse,
    dependencies=[Depends(register_limiter)],
)
def process_register(
    request: Request,
    data: dict = Depends(UserForm.raw_form),
    user_service: UserService = Depends(get_user_service),
    view: View = Depends(get_view),
):
    """
    Register a new user from the registration form.

    Invalid input and already registered emails re-render the form with
    per-field messages. On success the user is told to check their inbox
    and sent back to the registration page.
    """
    try:
        form = UserForm(**data)
    except ValidationError as exc:
        return view(
            "register.html",
            status_code=status.HTTP_400_BAD_REQUEST,
            form=UserForm.model_construct(**data),
            errors=form_errors(exc),
        )

    try:
        user_service.register_from_form(form)
    except DuplicateEmailError as exc:
        logger.info("Registration rejected, email taken: %s", exc.email)
        return view(
            "register.html",
            status_code=status.HTTP_409_CONFLICT,
            form=UserForm.model_construct(**data),
            errors={"email": exc.user_message},
        )

    return redirect(
        request,
        FlowResult(
            redirect_to="/register",
            message=Message(content="Registration Successful", type=MessageType.green),
        ),
    )
