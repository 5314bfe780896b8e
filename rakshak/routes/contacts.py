"""
Emergency contact endpoints.

Contacts belong to a partition named by "userId"; requests without one use
the shared default partition.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from rakshak.core.settings import settings
from rakshak.models.contact import ContactCreate, ContactResponse
from rakshak.services.contact_service import ContactService, get_contact_service

router = APIRouter(prefix="/contacts", tags=["Contacts"])


@router.get("", response_model=List[ContactResponse])
async def list_contacts(
    user_id: Optional[str] = Query(None, alias="userId"),
    service: ContactService = Depends(get_contact_service),
):
    return service.list_contacts(user_id or settings.DEFAULT_USER_ID)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(contact: ContactCreate, service: ContactService = Depends(get_contact_service)):
    """
    Add an emergency contact.

    The phone may be in any common Indian format (spaces, dashes, leading 0,
    country code); it is stored as +91XXXXXXXXXX. Anything else is a 400.
    """
    return service.create_contact(
        user_id=contact.user_id or settings.DEFAULT_USER_ID,
        name=contact.name,
        phone=contact.phone,
    )


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    service: ContactService = Depends(get_contact_service),
):
    service.delete_contact(contact_id, user_id or settings.DEFAULT_USER_ID)
    return {"message": "Contact deleted successfully"}
