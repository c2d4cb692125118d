"""Pydantic models for API request/response validation."""

from datetime import datetime
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field, model_validator  # type: ignore

from ..core.enums import ContactSource, LinkKind, SharingLevel, VerificationStatus
from ..domain.models import BusinessCard, Contact, DeepLinkAction


class ProblemDetails(BaseModel):
    """RFC 9457 Problem Details for HTTP APIs."""

    type: str = Field(description="A URI reference that identifies the problem type")
    title: str = Field(description="A short, human-readable summary of the problem type")
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(
        None, description="A human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None, description="A URI reference that identifies the specific occurrence"
    )


# Contact schemas
class ContactCreate(BaseModel):
    """Schema for storing a contact manually."""

    business_card: BusinessCard
    source: ContactSource = ContactSource.MANUAL
    received_at: Optional[datetime] = None
    tags: Set[str] = Field(default_factory=set)
    notes: Optional[str] = Field(None, max_length=5000)
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED

    def to_contact(self) -> Contact:
        data = self.model_dump(exclude_none=True)
        return Contact.model_validate(data)


class ContactUpdate(BaseModel):
    """Schema for replacing a stored contact's editable fields."""

    business_card: Optional[BusinessCard] = None
    tags: Optional[Set[str]] = None
    notes: Optional[str] = Field(None, max_length=5000)
    verification_status: Optional[VerificationStatus] = None
    last_interaction: Optional[datetime] = None

    def apply_to(self, contact: Contact) -> Contact:
        """Return a copy of ``contact`` with the provided fields replaced."""
        changes = self.model_dump(exclude_unset=True)
        return Contact.model_validate({**contact.model_dump(), **changes})


class ContactListResponse(BaseModel):
    """Schema for listing contacts."""

    contacts: List[Contact]
    count: int


class TagListResponse(BaseModel):
    tags: List[str]


# Link schemas
class LinkCreate(BaseModel):
    """Schema for creating a share link."""

    card: BusinessCard
    level: SharingLevel = SharingLevel.PUBLIC
    kind: LinkKind = LinkKind.SHARE
    expiration_hours: Optional[int] = Field(None, ge=0, le=24 * 365)


class LinkResponse(BaseModel):
    url: str
    kind: LinkKind
    level: SharingLevel


class LinkResolveRequest(BaseModel):
    """A link opened by the user, or raw text scanned from a QR code."""

    url: Optional[str] = Field(None, max_length=32 * 1024)
    text: Optional[str] = Field(None, max_length=32 * 1024)

    @model_validator(mode="after")
    def _exactly_one(self) -> "LinkResolveRequest":
        if (self.url is None) == (self.text is None):
            raise ValueError("Provide exactly one of 'url' or 'text'")
        return self


class LinkResolveResponse(BaseModel):
    accepted: bool
    universal_link: bool = False
    action: Optional[DeepLinkAction] = None


class SchemeUrlRequest(BaseModel):
    """An in-app route such as ``contacts`` with optional query parameters."""

    path: str = Field("", max_length=200)
    parameters: Dict[str, str] = Field(default_factory=dict)


class SchemeUrlResponse(BaseModel):
    url: str


class PendingActionResponse(BaseModel):
    action: Optional[DeepLinkAction] = None
    last_received_card: Optional[BusinessCard] = None
