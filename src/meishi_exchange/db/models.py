"""SQLAlchemy models for Meishi Exchange."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, LargeBinary, String

from .database import Base


class ContactVaultRecord(Base):
    """An encrypted snapshot of a whole contact collection."""

    __tablename__ = "contact_vault"

    key = Column(String(64), primary_key=True)
    ciphertext = Column(LargeBinary, nullable=False)
    contact_count = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<ContactVaultRecord(key='{self.key}', contacts={self.contact_count})>"
