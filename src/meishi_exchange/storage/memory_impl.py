"""In-memory implementation of the contact store for testing."""

from typing import List, Optional

from ..core.errors import CardError, NotFoundError, PersistenceError
from ..core.result import Result
from ..domain.models import Contact
from .encryption import CardCipher
from .interfaces import ContactStore, open_contacts, seal_contacts


class MemoryContactStore(ContactStore):
    """
    Keeps the sealed contact document in memory.

    The payload still goes through the cipher so that serialization problems
    surface the same way they would with a real store. Failures can be
    injected to exercise rollback paths.
    """

    def __init__(self, cipher: Optional[CardCipher] = None):
        self._cipher = cipher or CardCipher.generate()
        self._token: Optional[bytes] = None
        self._pending_save_failures = 0
        self._save_error: Optional[CardError] = None
        self.load_error: Optional[CardError] = None
        self.save_calls = 0
        self.load_calls = 0

    def fail_next_save(self, count: int = 1, error: Optional[CardError] = None) -> None:
        """Make the next ``count`` saves fail."""
        self._pending_save_failures = count
        self._save_error = error

    def load_all(self) -> Result[List[Contact]]:
        """Load every stored contact."""
        self.load_calls += 1
        if self.load_error is not None:
            return Result.failure(self.load_error)
        if self._token is None:
            return Result.failure(NotFoundError("No contacts stored"))
        try:
            return Result.success(open_contacts(self._cipher, self._token))
        except PersistenceError as e:
            return Result.failure(e)

    def save_all(self, contacts: List[Contact]) -> Result[None]:
        """Replace the stored collection with ``contacts``."""
        self.save_calls += 1
        if self._pending_save_failures > 0:
            self._pending_save_failures -= 1
            return Result.failure(
                self._save_error or PersistenceError("Simulated storage failure")
            )
        try:
            self._token = seal_contacts(self._cipher, contacts)
        except PersistenceError as e:
            return Result.failure(e)
        return Result.success()

    def stored_contacts(self) -> List[Contact]:
        """Decrypt the current document; empty when nothing was saved."""
        if self._token is None:
            return []
        return open_contacts(self._cipher, self._token)
