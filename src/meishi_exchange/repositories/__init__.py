"""Repository layer for received contacts."""

from .contacts import ContactRepository

__all__ = ["ContactRepository"]
