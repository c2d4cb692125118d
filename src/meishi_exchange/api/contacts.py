"""Contact management API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..core.enums import ContactSource, VerificationStatus
from ..domain.models import Contact, ContactStatistics
from ..repositories.contacts import ContactRepository
from .dependencies import get_contact_repository, unwrap
from .middleware import ProblemDetailsException
from .schemas import (
    ContactCreate,
    ContactListResponse,
    ContactUpdate,
    ProblemDetails,
    TagListResponse,
)

router = APIRouter(prefix="/v1/contacts", tags=["contacts"])


def _list_response(contacts) -> ContactListResponse:
    return ContactListResponse(contacts=contacts, count=len(contacts))


@router.get("", response_model=ContactListResponse)
def list_contacts(
    source: Optional[ContactSource] = None,
    tag: Optional[str] = None,
    verification_status: Optional[VerificationStatus] = Query(None, alias="status"),
    repository: ContactRepository = Depends(get_contact_repository),
) -> ContactListResponse:
    """
    List contacts, most recently received first.

    At most one filter is applied; ``source`` takes precedence over ``tag``,
    which takes precedence over ``status``.
    """
    if source is not None:
        contacts = unwrap(repository.get_by_source(source))
    elif tag is not None:
        contacts = unwrap(repository.get_by_tag(tag))
    elif verification_status is not None:
        contacts = unwrap(repository.get_by_verification_status(verification_status))
    else:
        contacts = unwrap(repository.get_all())
    return _list_response(contacts)


@router.get("/search", response_model=ContactListResponse)
def search_contacts(
    q: str = Query("", max_length=200),
    repository: ContactRepository = Depends(get_contact_repository),
) -> ContactListResponse:
    """Search contacts by name, company, title, email, skills, tags or notes."""
    return _list_response(unwrap(repository.search(q)))


@router.get("/recent", response_model=ContactListResponse)
def recent_contacts(
    days: int = Query(7, ge=0, le=3650),
    repository: ContactRepository = Depends(get_contact_repository),
) -> ContactListResponse:
    """Contacts received in the last ``days`` days."""
    return _list_response(unwrap(repository.get_recent(days)))


@router.get("/tags", response_model=TagListResponse)
def list_tags(
    repository: ContactRepository = Depends(get_contact_repository),
) -> TagListResponse:
    return TagListResponse(tags=repository.get_all_tags())


@router.get("/statistics", response_model=ContactStatistics)
def contact_statistics(
    repository: ContactRepository = Depends(get_contact_repository),
) -> ContactStatistics:
    return repository.statistics()


@router.post(
    "/refresh",
    response_model=ContactListResponse,
    responses={503: {"model": ProblemDetails, "description": "Storage unavailable"}},
)
def refresh_contacts(
    repository: ContactRepository = Depends(get_contact_repository),
) -> ContactListResponse:
    """Reload contacts from encrypted storage."""
    repository.refresh()
    if repository.last_error is not None:
        raise ProblemDetailsException.from_card_error(repository.last_error)
    return _list_response(unwrap(repository.get_all()))


@router.get(
    "/{contact_id}",
    response_model=Contact,
    responses={404: {"model": ProblemDetails, "description": "Contact not found"}},
)
def get_contact(
    contact_id: UUID,
    repository: ContactRepository = Depends(get_contact_repository),
) -> Contact:
    return unwrap(repository.get(contact_id))


@router.post(
    "",
    response_model=Contact,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"model": ProblemDetails, "description": "Card already stored"},
        503: {"model": ProblemDetails, "description": "Storage unavailable"},
    },
)
def create_contact(
    payload: ContactCreate,
    repository: ContactRepository = Depends(get_contact_repository),
) -> Contact:
    """Store a contact entered manually."""
    return unwrap(repository.add(payload.to_contact()))


@router.put(
    "/{contact_id}",
    response_model=Contact,
    responses={
        404: {"model": ProblemDetails, "description": "Contact not found"},
        503: {"model": ProblemDetails, "description": "Storage unavailable"},
    },
)
def update_contact(
    contact_id: UUID,
    payload: ContactUpdate,
    repository: ContactRepository = Depends(get_contact_repository),
) -> Contact:
    """Replace tags, notes, verification state or the card of a contact."""
    existing = unwrap(repository.get(contact_id))
    return unwrap(repository.update(payload.apply_to(existing)))


@router.delete(
    "/{contact_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        404: {"model": ProblemDetails, "description": "Contact not found"},
        503: {"model": ProblemDetails, "description": "Storage unavailable"},
    },
)
def delete_contact(
    contact_id: UUID,
    repository: ContactRepository = Depends(get_contact_repository),
) -> Response:
    unwrap(repository.delete(contact_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
