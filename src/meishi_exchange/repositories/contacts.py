"""Repository for received business cards (contacts).

The repository keeps every contact in memory and mirrors the whole
collection to an encrypted store after each mutation. A mutation that cannot
be persisted is undone before the call returns, so callers never observe a
state the store does not also hold.
"""

import threading
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import UUID

from ..core.enums import ContactSource, VerificationStatus
from ..core.errors import CardError, DuplicateError, NotFoundError, PersistenceError
from ..core.result import Result
from ..domain.models import Contact, ContactStatistics
from ..storage.interfaces import ContactStore
from ..utils.logging_config import get_module_logger, log_exception

logger = get_module_logger(__name__)

Clock = Callable[[], datetime]


def _newest_first(contacts: List[Contact]) -> List[Contact]:
    return sorted(contacts, key=lambda c: c.received_at, reverse=True)


class ContactRepository:
    """In-memory contact collection synchronized to an encrypted store.

    All public methods run under one re-entrant lock, which makes the
    instance the single serialization point for reads and writes.
    """

    def __init__(
        self,
        store: ContactStore,
        clock: Optional[Clock] = None,
        sort_empty_search: bool = False,
    ):
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._sort_empty_search = sort_empty_search
        self._lock = threading.RLock()
        self._contacts: List[Contact] = []
        self._is_loading = False
        self._last_error: Optional[CardError] = None

        self._load_from_storage()

    # Properties

    @property
    def contacts(self) -> List[Contact]:
        """Snapshot of the collection in storage order."""
        with self._lock:
            return list(self._contacts)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> Optional[CardError]:
        """Error from the most recent failed load, if any."""
        return self._last_error

    # Mutations

    def add(self, contact: Contact) -> Result[Contact]:
        """Add a new contact unless its business card is already stored."""
        with self._lock:
            card_id = contact.business_card.id
            if any(c.business_card.id == card_id for c in self._contacts):
                logger.info(f"Rejected duplicate contact for card {card_id}")
                return Result.failure(DuplicateError())

            self._contacts.append(contact)

            saved = self._save_to_storage()
            if saved.is_failure:
                self._contacts.pop()
                logger.warning(
                    f"Rolled back add of contact {contact.id}: {saved.error.message}"
                )
                return Result.failure(saved.error)

            logger.info(f"Added contact {contact.id} ({contact.source.value})")
            return Result.success(contact)

    def update(self, contact: Contact) -> Result[Contact]:
        """Replace the stored contact that has the same id."""
        with self._lock:
            index = self._index_of(contact.id)
            if index is None:
                return Result.failure(NotFoundError())

            original = self._contacts[index]
            self._contacts[index] = contact

            saved = self._save_to_storage()
            if saved.is_failure:
                self._contacts[index] = original
                logger.warning(
                    f"Rolled back update of contact {contact.id}: {saved.error.message}"
                )
                return Result.failure(saved.error)

            logger.info(f"Updated contact {contact.id}")
            return Result.success(contact)

    def delete(self, contact_id: UUID) -> Result[None]:
        """Remove a contact by id."""
        with self._lock:
            index = self._index_of(contact_id)
            if index is None:
                return Result.failure(NotFoundError())

            removed = self._contacts.pop(index)

            saved = self._save_to_storage()
            if saved.is_failure:
                self._contacts.insert(index, removed)
                logger.warning(
                    f"Rolled back delete of contact {contact_id}: {saved.error.message}"
                )
                return Result.failure(saved.error)

            logger.info(f"Deleted contact {contact_id}")
            return Result.success()

    # Queries

    def get(self, contact_id: UUID) -> Result[Contact]:
        """Get a specific contact by id."""
        with self._lock:
            index = self._index_of(contact_id)
            if index is None:
                return Result.failure(NotFoundError())
            return Result.success(self._contacts[index])

    def get_all(self) -> Result[List[Contact]]:
        """All contacts, most recently received first."""
        with self._lock:
            return Result.success(_newest_first(self._contacts))

    def search(self, query: str) -> Result[List[Contact]]:
        """
        Search contacts by name, company, title, email, skills, tags or notes.

        An empty query returns the whole collection in storage order unless
        the repository was created with ``sort_empty_search=True``.
        """
        trimmed = query.strip()
        with self._lock:
            if not trimmed:
                if self._sort_empty_search:
                    return Result.success(_newest_first(self._contacts))
                return Result.success(list(self._contacts))

            matches = [c for c in self._contacts if c.matches(trimmed)]
            return Result.success(_newest_first(matches))

    def get_by_source(self, source: ContactSource) -> Result[List[Contact]]:
        with self._lock:
            return Result.success(
                _newest_first([c for c in self._contacts if c.source == source])
            )

    def get_by_tag(self, tag: str) -> Result[List[Contact]]:
        with self._lock:
            return Result.success(
                _newest_first([c for c in self._contacts if tag in c.tags])
            )

    def get_by_verification_status(
        self, status: VerificationStatus
    ) -> Result[List[Contact]]:
        with self._lock:
            return Result.success(
                _newest_first(
                    [c for c in self._contacts if c.verification_status == status]
                )
            )

    def get_all_tags(self) -> List[str]:
        """Distinct tags across all contacts, sorted."""
        with self._lock:
            return sorted({tag for c in self._contacts for tag in c.tags})

    def get_recent(self, days: int) -> Result[List[Contact]]:
        """Contacts received within the last ``days`` days."""
        cutoff = self._clock() - timedelta(days=days)
        with self._lock:
            return Result.success(
                _newest_first([c for c in self._contacts if c.received_at >= cutoff])
            )

    def statistics(self) -> ContactStatistics:
        """Compute statistics over the current collection."""
        with self._lock:
            return ContactStatistics(
                total_contacts=len(self._contacts),
                source_distribution=dict(Counter(c.source for c in self._contacts)),
                verification_distribution=dict(
                    Counter(c.verification_status for c in self._contacts)
                ),
                total_tags=len(self.get_all_tags()),
                last_updated=self._clock(),
            )

    def refresh(self) -> None:
        """Reload contacts from the store."""
        self._load_from_storage()

    # Internals

    def _index_of(self, contact_id: UUID) -> Optional[int]:
        for index, contact in enumerate(self._contacts):
            if contact.id == contact_id:
                return index
        return None

    def _load_from_storage(self) -> None:
        with self._lock:
            self._is_loading = True
            self._last_error = None
            try:
                loaded = self._store.load_all()
                if loaded.is_success:
                    self._contacts = _newest_first(loaded.value)
                    logger.info(f"Loaded {len(self._contacts)} contacts from storage")
                elif isinstance(loaded.error, NotFoundError):
                    # Nothing stored yet
                    self._contacts = []
                else:
                    self._last_error = loaded.error
                    logger.error(f"Failed to load contacts: {loaded.error.message}")
            finally:
                self._is_loading = False

    def _save_to_storage(self) -> Result[None]:
        try:
            return self._store.save_all(list(self._contacts))
        except CardError as e:
            log_exception("repository", e, {"operation": "save_all"})
            return Result.failure(e)
        except Exception as e:
            log_exception("repository", e, {"operation": "save_all"})
            return Result.failure(PersistenceError(f"Failed to save contacts: {e}"))
