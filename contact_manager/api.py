"""JSON endpoints."""

from fastapi import APIRouter, Depends

from . import schemas
from .services import ContactService, get_contact_service

router = APIRouter(prefix="/api", tags=["api"])


@router.get("/contacts/{contact_id}", response_model=schemas.ContactOut)
def get_contact(
    contact_id: str,
    contact_service: ContactService = Depends(get_contact_service),
):
    """
    Retrieve a contact by its ID.

    This endpoint does not require a session, unlike the ``/user``
    pages.

    Args:
        contact_id (str): Contact identifier.
        contact_service (ContactService): Contact service.

    Raises:
        NotFoundError: If the contact does not exist (rendered as 404).

    Returns:
        ContactOut: Contact data.
    """
    return contact_service.get_by_id(contact_id)
