"""Error kinds shared by the repository, the stores and the deep link codec.

Errors are carried inside ``Result`` values rather than raised across the
public API, so every class keeps a short human-readable message that can be
shown to the user as-is.
"""

from typing import Optional


class CardError(Exception):
    """Base exception for card and contact operations."""

    default_message = "Card operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateError(CardError):
    """A contact for the same business card already exists."""

    default_message = "Contact with this business card already exists"


class NotFoundError(CardError):
    """The requested record does not exist."""

    default_message = "Contact not found"


class PersistenceError(CardError):
    """The encrypted store could not load or save contacts."""

    default_message = "Failed to access encrypted storage"


class EncryptionError(PersistenceError):
    """A stored payload could not be encrypted or decrypted."""

    default_message = "Failed to encrypt or decrypt stored contacts"


class ExpiredLinkError(CardError):
    """A temporary share link was used after its expiration time."""

    default_message = "This share link has expired"


class InvalidFormatError(CardError):
    """A link or payload does not contain a valid business card."""

    default_message = "Invalid business card format"
