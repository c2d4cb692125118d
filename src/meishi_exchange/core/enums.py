"""Enums for the Meishi Exchange application."""

from enum import Enum


class ContactSource(str, Enum):
    """How a contact's business card was received."""

    QR_CODE = "qr_code"
    MANUAL = "manual"
    SHARE_LINK = "share_link"
    APP_CLIP = "app_clip"
    PROXIMITY = "proximity"


class VerificationStatus(str, Enum):
    """Trust state assigned to a received contact."""

    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    FAILED = "failed"


class SharingLevel(str, Enum):
    """Policy deciding which card fields leave the device."""

    PUBLIC = "public"
    PROFESSIONAL = "professional"
    PERSONAL = "personal"


class LinkKind(str, Enum):
    """Deep link variants produced by the codec."""

    SHARE = "share"
    APP_CLIP = "app_clip"
    TEMPORARY = "temporary"


class DeepLinkActionKind(str, Enum):
    """Signals handed to the UI layer after a deep link is handled."""

    SHOW_RECEIVED_CARD = "show_received_card"
    SHOW_ERROR = "show_error"
    NAVIGATE_TO_SHARING = "navigate_to_sharing"
    NAVIGATE_TO_CONTACTS = "navigate_to_contacts"


class LinkRoute(str, Enum):
    """Which URL shape an incoming link was recognized as."""

    BUSINESS_CARD = "business_card"
    SHARE_LINK = "share_link"
    APP_CLIP = "app_clip"
