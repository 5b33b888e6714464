############################################################
#
# requestbooth - Live Event Song Request Service
#
# models.py: SQLAlchemy ORM models for all database entities
#
############################################################

"""SQLAlchemy database models for RequestBooth."""

from datetime import datetime
from enum import Enum as PyEnum
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base, TimestampMixin, utcnow

# Use enum values (lowercase) for database storage, not enum names (uppercase)
_enum_values = lambda obj: [e.value for e in obj]


# Enums
class RequestStatus(str, PyEnum):
    """Song request lifecycle status."""
    PENDING = "pending"
    PLAYED = "played"
    SKIPPED = "skipped"
    REMOVED = "removed"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class RequestType(str, PyEnum):
    """Which queue a request belongs to."""
    DJ = "dj"
    KARAOKE = "karaoke"


class SongVersion(str, PyEnum):
    """Requested version of a song."""
    STANDARD = "Standard"
    KARAOKE = "Karaoke"


class SongType(str, PyEnum):
    """Catalog classification of a song."""
    DJ = "dj"
    KARAOKE = "karaoke"
    BOTH = "both"


# Known system setting keys
REQUESTS_ENABLED_KEY = "requests_enabled"
MAINTENANCE_MODE_KEY = "maintenance_mode"


# DJ accounts
class DJUser(Base, TimestampMixin):
    """DJ account; the only authenticated role."""

    __tablename__ = "dj_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)


# Song catalog
class Song(Base, TimestampMixin):
    """Song library entry."""

    __tablename__ = "songs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # "3:45"
    request_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    song_type: Mapped[SongType] = mapped_column(
        Enum(SongType, values_callable=_enum_values), nullable=False, default=SongType.DJ
    )

    # Relationships
    requests: Mapped[List["SongRequest"]] = relationship("SongRequest", back_populates="song")

    __table_args__ = (
        Index("ix_songs_title", "title"),
        Index("ix_songs_artist", "artist"),
    )


# Request queue
class SongRequest(Base):
    """A guest's song request awaiting DJ action."""

    __tablename__ = "requests"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    song_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("songs.id"), nullable=True
    )  # null for manual requests
    song_title: Mapped[str] = mapped_column(String(255), nullable=False)
    song_artist: Mapped[str] = mapped_column(String(255), nullable=False)
    song_version: Mapped[SongVersion] = mapped_column(
        Enum(SongVersion, values_callable=_enum_values), nullable=False, default=SongVersion.STANDARD
    )
    request_type: Mapped[RequestType] = mapped_column(
        Enum(RequestType, values_callable=_enum_values), nullable=False, default=RequestType.DJ
    )
    requester_name: Mapped[str] = mapped_column(String(100), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, values_callable=_enum_values), nullable=False, default=RequestStatus.PENDING
    )
    is_manual_request: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    user_uuid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    # Relationships
    song: Mapped[Optional["Song"]] = relationship("Song", back_populates="requests")

    __table_args__ = (
        Index("ix_requests_type_timestamp", "request_type", "timestamp"),
        Index("ix_requests_user_uuid", "user_uuid"),
        Index("ix_requests_status", "status"),
    )


# Ban list
class Ban(Base):
    """Restriction preventing a user id from submitting requests."""

    __tablename__ = "ban_list"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_uuid: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ban_reason: Mapped[str] = mapped_column(Text, nullable=False)
    ban_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    is_permanent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


# Terms of service
class TermsAcceptance(Base):
    """Record that an anonymous user acknowledged the terms."""

    __tablename__ = "terms_acceptance"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_uuid: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    device_fingerprint: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    accepted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


# Global switches
class SystemSetting(Base):
    """Global key/value switch (requests_enabled, maintenance_mode)."""

    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
