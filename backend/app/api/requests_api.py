############################################################
#
# requestbooth - Live Event Song Request Service
#
# requests_api.py: Song request queue endpoints
#
############################################################

"""Song request queue endpoints."""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel

from backend.app.api.auth import require_dj
from backend.app.api.deps import get_access_gate
from backend.app.api.schemas import CamelModel, SongRequestResponse, SongResponse
from backend.app.core.access_gate import AccessGate
from backend.app.core.errors import NotFound
from backend.app.core.identity import IdentityProvider, get_identity_provider
from backend.app.core.request_queue import RequestSubmission, parse_request_type
from backend.app.security.sessions import DJSession

router = APIRouter()


# Request models
class SubmitRequest(CamelModel):
    """
    Song request submission.

    Text fields are loosely typed here so the queue can report the first
    failing field by name.
    """
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
    # Accepted for compatibility and ignored; new requests are always pending
    status: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None


@router.get("", response_model=List[SongRequestResponse])
async def list_requests(
    request_type: Optional[str] = Query(default=None, alias="type"),
    gate: AccessGate = Depends(get_access_gate),
):
    """All requests in submission order, optionally for one queue."""
    return await gate.queue.list(parse_request_type(request_type))


@router.post("", response_model=SongRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request(
    body: SubmitRequest,
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    """Submit a song request."""
    identity = identity_provider.resolve(request, body.model_dump(by_alias=True))
    submission = RequestSubmission(
        requester_name=body.requester_name,
        song_title=body.song_title,
        song_artist=body.song_artist,
        song_id=body.song_id,
        song_version=body.song_version,
        request_type=body.request_type,
        notes=body.notes,
        is_manual_request=body.is_manual_request,
    )
    return await gate.submit_request(identity, submission)


@router.get("/stats")
async def request_stats(
    request_type: Optional[str] = Query(default=None, alias="type"),
    gate: AccessGate = Depends(get_access_gate),
) -> Dict[str, int]:
    """Queue counters."""
    stats = await gate.queue.stats(parse_request_type(request_type))
    return stats.to_dict()


@router.delete("/completed", status_code=status.HTTP_204_NO_CONTENT)
async def clear_completed(
    request_type: Optional[str] = Query(default=None, alias="type"),
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
) -> Response:
    """Remove played and skipped requests."""
    await gate.queue.clear_completed(parse_request_type(request_type))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_all(
    request_type: Optional[str] = Query(default=None, alias="type"),
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
) -> Response:
    """Remove every request, optionally for one queue."""
    await gate.queue.clear_all(parse_request_type(request_type))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{request_id}/status", response_model=SongRequestResponse)
async def update_status(
    request_id: int,
    body: StatusUpdate,
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
):
    """Mark a request played, skipped or removed."""
    updated = await gate.queue.update_status(request_id, body.status)
    if updated is None:
        raise NotFound("Request not found")
    return updated


@router.post("/{request_id}/add-to-library", response_model=SongResponse)
async def add_to_library(
    request_id: int,
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
):
    """Turn a manual request into a catalog song."""
    song = await gate.queue.add_to_library(request_id)
    if song is None:
        raise NotFound("Request not found or not a manual request")
    return song


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
) -> Response:
    if not await gate.queue.delete(request_id):
        raise NotFound("Request not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
