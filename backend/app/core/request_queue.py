############################################################
#
# requestbooth - Live Event Song Request Service
#
# request_queue.py: Song request lifecycle, validation and stats
#
############################################################

"""Song request queue.

Requests start ``pending`` and move exactly once to a terminal status
(``played``, ``skipped`` or ``removed``). Terminal requests never change
again.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import InvalidTransition, ValidationError
from backend.app.db import crud
from backend.app.db.models import (
    RequestStatus,
    RequestType,
    Song,
    SongRequest,
    SongType,
    SongVersion,
)
from backend.app.logging_config import get_logger

logger = get_logger(__name__)

MIN_TEXT_LENGTH = 2

# (attribute, client field name, max length), checked in this order
_TEXT_FIELDS = (
    ("requester_name", "requesterName", 50),
    ("song_title", "songTitle", 100),
    ("song_artist", "songArtist", 100),
)

_FIELD_LABELS = {
    "requesterName": "Name",
    "songTitle": "Song title",
    "songArtist": "Artist",
}


@dataclass
class RequestSubmission:
    """Raw submission as received from a guest or a DJ."""

    requester_name: Optional[str] = None
    song_title: Optional[str] = None
    song_artist: Optional[str] = None
    song_id: Optional[int] = None
    song_version: Optional[str] = None
    request_type: Optional[str] = None
    notes: Optional[str] = None
    is_manual_request: bool = False
    user_uuid: Optional[str] = None
    device_fingerprint: Optional[str] = None


@dataclass
class RequestStats:
    """Queue counters. ``completed`` counts played requests only."""

    total_requests: int = 0
    pending: int = 0
    completed: int = 0
    manual: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalRequests": self.total_requests,
            "pending": self.pending,
            "completed": self.completed,
            "manual": self.manual,
        }


def parse_request_type(value: Optional[str]) -> Optional[RequestType]:
    """Parse an optional queue filter. Empty means all queues."""
    if value is None or value == "":
        return None
    try:
        return RequestType(value)
    except ValueError:
        raise ValidationError("type", f"Unknown request type: {value}")


def parse_status(value: Any) -> RequestStatus:
    try:
        return RequestStatus(value)
    except ValueError:
        raise ValidationError("status", f"Unknown status: {value}")


def validate_submission(submission: RequestSubmission) -> Dict[str, Any]:
    """
    Validate and normalize a submission.

    Raises:
        ValidationError: On the first failing field

    Returns:
        Keyword arguments for ``crud.create_request``
    """
    values: Dict[str, Any] = {}
    for attr, field_name, max_length in _TEXT_FIELDS:
        text = (getattr(submission, attr) or "").strip()
        label = _FIELD_LABELS[field_name]
        if len(text) < MIN_TEXT_LENGTH:
            raise ValidationError(
                field_name, f"{label} must be at least {MIN_TEXT_LENGTH} characters"
            )
        if len(text) > max_length:
            raise ValidationError(
                field_name, f"{label} must be at most {max_length} characters"
            )
        values[attr] = text

    try:
        values["song_version"] = SongVersion(submission.song_version or SongVersion.STANDARD.value)
    except ValueError:
        raise ValidationError("songVersion", "Song version must be Standard or Karaoke")

    try:
        values["request_type"] = RequestType(submission.request_type or RequestType.DJ.value)
    except ValueError:
        raise ValidationError("requestType", "Request type must be dj or karaoke")

    notes = (submission.notes or "").strip()
    values["notes"] = notes or None
    values["is_manual_request"] = bool(submission.is_manual_request)
    values["user_uuid"] = submission.user_uuid
    values["device_fingerprint"] = submission.device_fingerprint
    return values


class RequestQueue:
    """Song requests for the DJ and karaoke queues."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(self, submission: RequestSubmission) -> SongRequest:
        """Validate and insert a pending request."""
        values = validate_submission(submission)
        request = await self.insert(values, submission.song_id)
        await self.db.commit()
        return await crud.get_request(self.db, request.id)

    async def insert(self, values: Dict[str, Any], song_id: Optional[int]) -> SongRequest:
        """Insert already validated values without committing."""
        song = await crud.get_song(self.db, song_id) if song_id is not None else None
        if song is not None:
            await crud.increment_song_request_count(self.db, song.id)

        request = await crud.create_request(
            self.db, song_id=song.id if song else None, **values
        )
        logger.info(
            "request_submitted",
            request_id=request.id,
            request_type=request.request_type.value,
            song_id=request.song_id,
            manual=request.is_manual_request,
            user_uuid=request.user_uuid,
        )
        return request

    async def update_status(self, request_id: int, new_status: Any) -> Optional[SongRequest]:
        """
        Move a request to a new status.

        Returns:
            The updated request, or None if the id is unknown

        Raises:
            ValidationError: Unknown status value
            InvalidTransition: Request already left ``pending``
        """
        status = parse_status(new_status)

        request = await crud.get_request(self.db, request_id)
        if request is None:
            return None

        if request.status == status:
            return request
        if request.status.is_terminal or not status.is_terminal:
            raise InvalidTransition(
                f"Cannot change request from {request.status.value} to {status.value}"
            )

        moved = await crud.transition_request_status(
            self.db, request_id, RequestStatus.PENDING, status
        )
        await self.db.commit()
        if not moved:
            current = await crud.get_request(self.db, request_id)
            if current is None:
                return None
            if current.status == status:
                return current
            raise InvalidTransition(
                f"Cannot change request from {current.status.value} to {status.value}"
            )

        logger.info("request_status_changed", request_id=request_id, status=status.value)
        return await crud.get_request(self.db, request_id)

    async def delete(self, request_id: int) -> bool:
        deleted = await crud.delete_request(self.db, request_id)
        await self.db.commit()
        return deleted

    async def clear_completed(self, request_type: Optional[RequestType] = None) -> int:
        removed = await crud.clear_completed_requests(self.db, request_type)
        await self.db.commit()
        logger.info(
            "completed_requests_cleared",
            request_type=request_type.value if request_type else None,
            removed=removed,
        )
        return removed

    async def clear_all(self, request_type: Optional[RequestType] = None) -> int:
        removed = await crud.clear_all_requests(self.db, request_type)
        await self.db.commit()
        logger.info(
            "requests_cleared",
            request_type=request_type.value if request_type else None,
            removed=removed,
        )
        return removed

    async def list(self, request_type: Optional[RequestType] = None) -> List[SongRequest]:
        return await crud.get_requests(self.db, request_type)

    async def stats(self, request_type: Optional[RequestType] = None) -> RequestStats:
        counts = await crud.count_requests_by_status(self.db, request_type)
        return RequestStats(
            total_requests=counts["total"],
            pending=counts["pending"],
            completed=counts["played"],
            manual=counts["manual"],
        )

    async def add_to_library(self, request_id: int) -> Optional[Song]:
        """
        Turn a manual request into a catalog song and link the two.

        Returns:
            The new song, or None for unknown or non-manual requests
        """
        request = await crud.get_request(self.db, request_id)
        if request is None or not request.is_manual_request:
            return None

        song_type = SongType.KARAOKE if request.request_type == RequestType.KARAOKE else SongType.DJ
        song = await crud.create_song(
            self.db,
            title=request.song_title,
            artist=request.song_artist,
            song_type=song_type,
        )
        await crud.link_request_to_song(self.db, request, song)
        await self.db.commit()
        logger.info("request_added_to_library", request_id=request_id, song_id=song.id)
        return song
