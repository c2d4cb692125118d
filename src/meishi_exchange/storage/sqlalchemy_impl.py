"""SQLAlchemy implementation of the encrypted contact store."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.errors import NotFoundError, PersistenceError
from ..core.result import Result
from ..db.database import init_database
from ..db.models import ContactVaultRecord
from ..domain.models import Contact
from ..utils.logging_config import get_module_logger
from .encryption import CardCipher
from .interfaces import ContactStore, open_contacts, seal_contacts

logger = get_module_logger(__name__)

DEFAULT_VAULT_KEY = "contacts"


class SQLAlchemyContactStore(ContactStore):
    """
    Stores the contact collection as one encrypted row.

    Each save replaces the row inside a single transaction, so the database
    either holds the previous collection or the new one, never a mix.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        cipher: CardCipher,
        vault_key: str = DEFAULT_VAULT_KEY,
    ):
        self._session_factory = session_factory
        self._cipher = cipher
        self._vault_key = vault_key

    @classmethod
    def from_url(
        cls,
        database_url: str,
        cipher: CardCipher,
        vault_key: str = DEFAULT_VAULT_KEY,
        echo: bool = False,
    ) -> "SQLAlchemyContactStore":
        """Create a store backed by a new engine for ``database_url``."""
        return cls(init_database(database_url, echo=echo), cipher, vault_key)

    def load_all(self) -> Result[List[Contact]]:
        """Load every stored contact."""
        session = self._session_factory()
        try:
            record: Optional[ContactVaultRecord] = session.get(
                ContactVaultRecord, self._vault_key
            )
            if record is None:
                return Result.failure(NotFoundError("No contacts stored"))
            contacts = open_contacts(self._cipher, record.ciphertext)
            logger.debug(f"Loaded {len(contacts)} contacts from vault '{self._vault_key}'")
            return Result.success(contacts)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load contacts: {e}")
            return Result.failure(PersistenceError(f"Failed to load contacts: {e}"))
        except PersistenceError as e:
            logger.error(f"Failed to read contact vault: {e.message}")
            return Result.failure(e)
        finally:
            session.close()

    def save_all(self, contacts: List[Contact]) -> Result[None]:
        """Replace the stored collection with ``contacts``."""
        try:
            ciphertext = seal_contacts(self._cipher, contacts)
        except PersistenceError as e:
            logger.error(f"Failed to seal contacts: {e.message}")
            return Result.failure(e)

        session = self._session_factory()
        try:
            record = session.get(ContactVaultRecord, self._vault_key)
            if record is None:
                record = ContactVaultRecord(key=self._vault_key)
                session.add(record)
            record.ciphertext = ciphertext
            record.contact_count = len(contacts)
            record.updated_at = datetime.now(timezone.utc)
            session.commit()
            logger.debug(f"Saved {len(contacts)} contacts to vault '{self._vault_key}'")
            return Result.success()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(f"Failed to save contacts: {e}")
            return Result.failure(PersistenceError(f"Failed to save contacts: {e}"))
        finally:
            session.close()
