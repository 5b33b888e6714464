############################################################
#
# requestbooth - Live Event Song Request Service
#
# bans_api.py: Ban list management and ban check endpoints
#
############################################################

"""Ban endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response, status

from backend.app.api.auth import require_dj
from backend.app.api.deps import get_access_gate
from backend.app.api.schemas import BanResponse, CamelModel
from backend.app.core.access_gate import AccessGate, ban_message, serialize_ban
from backend.app.core.errors import NotFound
from backend.app.security.sessions import DJSession

router = APIRouter()


class BanCreateRequest(CamelModel):
    """Ban a user id."""
    user_uuid: Optional[str] = None
    device_fingerprint: Optional[str] = None
    ban_reason: Optional[str] = None
    is_permanent: bool = True
    expires_at: Optional[datetime] = None


@router.get("", response_model=List[BanResponse])
async def list_bans(
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
):
    """All bans, newest first."""
    return await gate.bans.list_bans()


@router.post("", response_model=BanResponse, status_code=status.HTTP_201_CREATED)
async def create_ban(
    body: BanCreateRequest,
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
):
    """Ban a user and remove their queued requests."""
    return await gate.ban_user(
        body.user_uuid,
        body.ban_reason,
        device_fingerprint=body.device_fingerprint,
        is_permanent=body.is_permanent,
        expires_at=body.expires_at,
    )


@router.delete("/{ban_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ban(
    ban_id: int,
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
) -> Response:
    """Lift a ban."""
    if not await gate.bans.delete_ban(ban_id):
        raise NotFound("Ban not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/check/{user_uuid}")
async def check_ban(
    user_uuid: str,
    gate: AccessGate = Depends(get_access_gate),
) -> Dict[str, Any]:
    """
    Ban status for a user id.

    Expired temporary bans are removed by this check.
    """
    ban = await gate.bans.check_ban_status(user_uuid)
    if ban is None:
        return {"status": "allowed"}

    body = serialize_ban(ban)
    return {
        "status": "banned",
        "message": ban_message(ban),
        "ban": body,
        "banReason": body["banReason"],
        "banTimestamp": body["banTimestamp"],
    }
