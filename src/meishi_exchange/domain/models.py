"""Business card and contact models.

BusinessCard is the payload exchanged between devices. Contact wraps a
received card with the metadata the receiver keeps about it (where it came
from, tags, notes, verification state).
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Set
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator  # type: ignore

from ..core.enums import (
    ContactSource,
    DeepLinkActionKind,
    SharingLevel,
    VerificationStatus,
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are treated as UTC so that sorting never mixes kinds
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Fields that a sharing level may strip from a card
SHAREABLE_FIELDS = (
    "title",
    "company",
    "email",
    "phone",
    "website",
    "skills",
    "categories",
    "social_networks",
)

LIST_FIELDS = {"skills", "categories", "social_networks"}


class SocialNetwork(BaseModel):
    """A social profile attached to a card."""

    platform: str = Field(min_length=1, max_length=50)
    username: str = Field(min_length=1, max_length=100)
    url: Optional[str] = None


class SharingPreferences(BaseModel):
    """Which card fields each sharing level exposes."""

    public: List[str] = Field(default_factory=lambda: ["title", "company"])
    professional: List[str] = Field(
        default_factory=lambda: [
            "title",
            "company",
            "email",
            "website",
            "skills",
            "categories",
            "social_networks",
        ]
    )
    personal: List[str] = Field(default_factory=lambda: list(SHAREABLE_FIELDS))

    def fields_for(self, level: SharingLevel) -> Set[str]:
        """Return the shareable field names allowed at a level."""
        level = SharingLevel(level)
        return set(getattr(self, level.value))


class BusinessCard(BaseModel):
    """A digital business card."""

    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(min_length=1, max_length=200)
    title: Optional[str] = None
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    social_networks: List[SocialNetwork] = Field(default_factory=list)
    sharing_preferences: SharingPreferences = Field(
        default_factory=SharingPreferences
    )
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def filtered_card(self, level: SharingLevel) -> "BusinessCard":
        """
        Return a copy containing only the fields shared at ``level``.

        ``id``, ``name``, timestamps and the preferences themselves are always
        kept so that the receiver can identify and display the card.
        """
        allowed = self.sharing_preferences.fields_for(level)
        cleared = {
            name: ([] if name in LIST_FIELDS else None)
            for name in SHAREABLE_FIELDS
            if name not in allowed
        }
        return self.model_copy(update=cleared, deep=True)

    def searchable_text(self) -> List[str]:
        """Text fields considered by contact search."""
        values = [self.name, self.title, self.company, self.email]
        values.extend(self.skills)
        return [v for v in values if v]


class Contact(BaseModel):
    """A business card received from someone else."""

    id: UUID = Field(default_factory=uuid4)
    business_card: BusinessCard
    received_at: datetime = Field(default_factory=utc_now)
    source: ContactSource = ContactSource.MANUAL
    tags: Set[str] = Field(default_factory=set)
    notes: Optional[str] = None
    verification_status: VerificationStatus = VerificationStatus.UNVERIFIED
    last_interaction: Optional[datetime] = None

    @field_validator("received_at")
    @classmethod
    def _normalize_received_at(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @field_validator("last_interaction")
    @classmethod
    def _normalize_last_interaction(
        cls, value: Optional[datetime]
    ) -> Optional[datetime]:
        return _as_utc(value) if value is not None else None

    def matches(self, search_text: str) -> bool:
        """Case-insensitive substring match across card fields, tags and notes."""
        needle = search_text.lower()
        haystack = self.business_card.searchable_text() + sorted(self.tags)
        if self.notes:
            haystack.append(self.notes)
        return any(needle in value.lower() for value in haystack)


class ContactStatistics(BaseModel):
    """Aggregate numbers over the stored contacts, computed on demand."""

    total_contacts: int
    source_distribution: Dict[ContactSource, int]
    verification_distribution: Dict[VerificationStatus, int]
    total_tags: int
    last_updated: datetime


class DeepLinkAction(BaseModel):
    """A one-shot signal for the UI layer."""

    model_config = ConfigDict(frozen=True)

    kind: DeepLinkActionKind
    card: Optional[BusinessCard] = None
    message: Optional[str] = None

    @classmethod
    def show_received_card(cls, card: BusinessCard) -> "DeepLinkAction":
        return cls(kind=DeepLinkActionKind.SHOW_RECEIVED_CARD, card=card)

    @classmethod
    def show_error(cls, message: str) -> "DeepLinkAction":
        return cls(kind=DeepLinkActionKind.SHOW_ERROR, message=message)

    @classmethod
    def navigate_to_sharing(cls) -> "DeepLinkAction":
        return cls(kind=DeepLinkActionKind.NAVIGATE_TO_SHARING)

    @classmethod
    def navigate_to_contacts(cls) -> "DeepLinkAction":
        return cls(kind=DeepLinkActionKind.NAVIGATE_TO_CONTACTS)
