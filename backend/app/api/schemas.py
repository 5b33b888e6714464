############################################################
#
# requestbooth - Live Event Song Request Service
#
# schemas.py: Shared camelCase response models for the API
#
############################################################

"""Pydantic models shared by the API routers.

Bodies on the wire are camelCase; Python attributes stay snake_case.
"""

from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.app.db.base import ensure_aware
from backend.app.db.models import RequestStatus, RequestType, SongType, SongVersion

UtcDateTime = Annotated[datetime, AfterValidator(ensure_aware)]


class CamelModel(BaseModel):
    """Base model with camelCase aliases that also accepts field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SongResponse(CamelModel):
    id: int
    title: str
    artist: str
    genre: Optional[str] = None
    duration: Optional[str] = None
    request_count: int = 0
    song_type: SongType
    created_at: Optional[UtcDateTime] = None
    updated_at: Optional[UtcDateTime] = None


class SongRequestResponse(CamelModel):
    id: int
    song_id: Optional[int] = None
    song_title: str
    song_artist: str
    song_version: SongVersion
    request_type: RequestType
    requester_name: str
    notes: Optional[str] = None
    status: RequestStatus
    is_manual_request: bool
    user_uuid: Optional[str] = None
    device_fingerprint: Optional[str] = None
    timestamp: UtcDateTime
    song: Optional[SongResponse] = None


class BanResponse(CamelModel):
    id: int
    user_uuid: str
    device_fingerprint: Optional[str] = None
    ban_reason: str
    ban_timestamp: UtcDateTime
    is_permanent: bool
    expires_at: Optional[UtcDateTime] = None


class TermsAcceptanceResponse(CamelModel):
    id: int
    user_uuid: str
    device_fingerprint: Optional[str] = None
    accepted_at: UtcDateTime


class MessageResponse(BaseModel):
    message: str
