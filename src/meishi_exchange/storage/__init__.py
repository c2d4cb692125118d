"""Encrypted persistence for received contacts."""

from .encryption import CardCipher
from .interfaces import ContactStore
from .memory_impl import MemoryContactStore
from .sqlalchemy_impl import SQLAlchemyContactStore

__all__ = [
    "CardCipher",
    "ContactStore",
    "MemoryContactStore",
    "SQLAlchemyContactStore",
]
