"""
mannxp.database.models — SQLAlchemy 2.0 Data Models
====================================================

Two independent schemas:

Server (the hosted backend, ``DATABASE_URL``):
- user_progression — authoritative cumulative XP per user

Client (the local fallback store, ``local_store_url``):
- local_store      — string key → string value, the persistent
                     key/value cache used when the backend is unreachable
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Bases
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for server-side ORM models."""


class LocalBase(DeclarativeBase):
    """Base for the client-side local store (separate database)."""


# ---------------------------------------------------------------------------
# Server tables
# ---------------------------------------------------------------------------
class UserProgression(Base):
    """Authoritative XP total.  Only ever incremented."""

    __tablename__ = "user_progression"
    __table_args__ = (
        CheckConstraint("total_xp >= 0", name="ck_user_progression_total_xp_non_negative"),
        Index("ix_user_progression_total_xp", "total_xp"),
    )

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    total_xp: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserProgression {self.user_id} xp={self.total_xp}>"


# ---------------------------------------------------------------------------
# Client tables
# ---------------------------------------------------------------------------
class LocalEntry(LocalBase):
    """One key/value pair in the local persistent store."""

    __tablename__ = "local_store"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
