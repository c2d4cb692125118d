"""Abstract store interface and the payload format shared by implementations."""

from abc import ABC, abstractmethod
from typing import List

from pydantic import TypeAdapter, ValidationError  # type: ignore

from ..core.errors import PersistenceError
from ..core.result import Result
from ..domain.models import Contact
from .encryption import CardCipher

_contact_list = TypeAdapter(List[Contact])


class ContactStore(ABC):
    """Persists the full contact collection as a single encrypted document."""

    @abstractmethod
    def load_all(self) -> Result[List[Contact]]:
        """Load every stored contact.

        Fails with NotFoundError when nothing has been saved yet and with
        PersistenceError for anything else.
        """
        pass

    @abstractmethod
    def save_all(self, contacts: List[Contact]) -> Result[None]:
        """Replace the stored collection with ``contacts``."""
        pass


def seal_contacts(cipher: CardCipher, contacts: List[Contact]) -> bytes:
    """Serialize and encrypt a contact collection."""
    try:
        payload = _contact_list.dump_json(list(contacts))
    except ValueError as e:
        raise PersistenceError(f"Contacts could not be serialized: {e}") from e
    return cipher.encrypt(payload)


def open_contacts(cipher: CardCipher, token: bytes) -> List[Contact]:
    """Decrypt and validate a sealed contact collection."""
    payload = cipher.decrypt(token)
    try:
        return _contact_list.validate_json(payload)
    except ValidationError as e:
        raise PersistenceError(f"Stored contacts are corrupted: {e}") from e
