"""Contact management pages of the logged-in user."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from .core import get_settings
from .models import User
from .schemas import (
    ContactForm,
    ContactSearchForm,
    FlowResult,
    Message,
    MessageType,
    form_errors,
)
from .security import get_current_user
from .services import ContactService, get_contact_service
from .web import View, flash, get_view, redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user/contacts", tags=["contacts"])


class PageParams:
    """Pagination and ordering query parameters shared by list and search."""

    def __init__(
        self,
        page: int = Query(0, ge=0),
        size: Optional[int] = Query(None, ge=1),
        sort_by: str = Query("name", alias="sortBy"),
        direction: str = Query("asc"),
    ):
        self.page = page
        self.size = size or get_settings().PAGE_SIZE
        self.sort_by = sort_by
        self.direction = direction


@router.get("/add", response_class=HTMLResponse)
def add_contact_view(
    current_user: User = Depends(get_current_user),
    view: View = Depends(get_view),
):
    """Empty contact form; new contacts default to favorite."""
    form = ContactForm.model_construct(favorite=True)
    return view("user/add_contact.html", form=form, errors={})


@router.post("/add", response_class=HTMLResponse)
def save_contact(
    request: Request,
    data: dict = Depends(ContactForm.raw_form),
    contact_image: UploadFile | None = File(None, alias="contactImage"),
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
    view: View = Depends(get_view),
):
    """
    Create a contact from the add form.

    Invalid input re-renders the form with field errors and a warning;
    on success the user is sent back to an empty form.
    """
    try:
        form = ContactForm(**data)
    except ValidationError as exc:
        errors = form_errors(exc)
        logger.info("Contact form rejected: %s", errors)
        flash(
            request,
            Message(content="Please correct the following errors", type=MessageType.red),
        )
        return view(
            "user/add_contact.html",
            status_code=status.HTTP_400_BAD_REQUEST,
            form=ContactForm.model_construct(**data),
            errors=errors,
        )

    contact_service.create_from_form(form, current_user.email, contact_image)
    return redirect(
        request,
        FlowResult(
            redirect_to="/user/contacts/add",
            message=Message(
                content="You have successfully added a new contact",
                type=MessageType.green,
            ),
        ),
    )


@router.get("", response_class=HTMLResponse)
def view_contacts(
    params: PageParams = Depends(),
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
    view: View = Depends(get_view),
):
    """Paginated, sorted list of the user's contacts."""
    page_contact = contact_service.page_by_owner(
        current_user, params.page, params.size, params.sort_by, params.direction
    )
    return view(
        "user/contacts.html",
        page_contact=page_contact,
        page_size=params.size,
        search_form=ContactSearchForm(),
    )


@router.get("/search", response_class=HTMLResponse)
def search_handler(
    search_form: ContactSearchForm = Depends(ContactSearchForm.as_form),
    params: PageParams = Depends(),
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
    view: View = Depends(get_view),
):
    """Search the user's contacts by name, email or phone."""
    logger.info("field %s keyword %s", search_form.field, search_form.value)
    page_contact = contact_service.search(
        search_form.field,
        search_form.value,
        current_user,
        params.page,
        params.size,
        params.sort_by,
        params.direction,
    )
    return view(
        "user/search.html",
        page_contact=page_contact,
        page_size=params.size,
        search_form=search_form,
    )


@router.get("/delete/{contact_id}")
def delete_contact(
    request: Request,
    contact_id: str,
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
):
    contact_service.delete(contact_id)
    logger.info("contactId %s deleted", contact_id)
    return redirect(
        request,
        FlowResult(
            redirect_to="/user/contacts",
            message=Message(
                content="Contact is Deleted successfully !! ", type=MessageType.green
            ),
        ),
    )


@router.get("/view/{contact_id}", response_class=HTMLResponse)
def update_contact_form_view(
    contact_id: str,
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
    view: View = Depends(get_view),
):
    """Edit form prefilled from the stored contact."""
    form = contact_service.form_for_edit(contact_id)
    return view(
        "user/update_contact_view.html",
        form=form,
        contact_id=contact_id,
        errors={},
    )


@router.post("/update/{contact_id}", response_class=HTMLResponse)
def update_contact(
    request: Request,
    contact_id: str,
    data: dict = Depends(ContactForm.raw_form),
    contact_image: UploadFile | None = File(None, alias="contactImage"),
    current_user: User = Depends(get_current_user),
    contact_service: ContactService = Depends(get_contact_service),
    view: View = Depends(get_view),
):
    """Apply the edit form; a new picture replaces the stored one."""
    try:
        form = ContactForm(**data)
    except ValidationError as exc:
        return view(
            "user/update_contact_view.html",
            status_code=status.HTTP_400_BAD_REQUEST,
            form=ContactForm.model_construct(**data),
            contact_id=contact_id,
            errors=form_errors(exc),
        )

    contact_service.apply_form(contact_id, form, contact_image)
    return redirect(
        request,
        FlowResult(
            redirect_to=f"/user/contacts/view/{contact_id}",
            message=Message(content="Contact Updated !!", type=MessageType.green),
        ),
    )
