############################################################
#
# requestbooth - Live Event Song Request Service
#
# system_api.py: System status, settings, override and access endpoints
#
############################################################

"""System status and access endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel

from backend.app.api.auth import LoginRequest, get_dj_session
from backend.app.api.deps import get_access_gate
from backend.app.core.access_gate import AccessGate
from backend.app.core.identity import IdentityProvider, get_identity_provider
from backend.app.security.sessions import DJSession, set_session_cookie

router = APIRouter()


class SettingRequest(BaseModel):
    """System setting change."""
    key: Optional[str] = None
    value: Optional[str] = None


@router.get("/system/status")
async def system_status(gate: AccessGate = Depends(get_access_gate)) -> Dict[str, bool]:
    """Current global switches."""
    current = await gate.status_store.get_status()
    return current.to_dict()


@router.post("/system/setting")
async def update_setting(
    body: SettingRequest,
    gate: AccessGate = Depends(get_access_gate),
    session: Optional[DJSession] = Depends(get_dj_session),
) -> Dict[str, Any]:
    """
    Change a system setting.

    Setting ``requests_enabled`` to "false" also clears all terms
    acceptances and every queued request.
    """
    await gate.apply_setting(body.key, body.value, is_dj=session is not None)
    current = await gate.status_store.get_status()
    return {"success": True, "status": current.to_dict()}


@router.post("/system/override", status_code=status.HTTP_204_NO_CONTENT)
async def override_login(
    body: LoginRequest,
    gate: AccessGate = Depends(get_access_gate),
) -> Response:
    """DJ login from the requests-disabled screen."""
    user = await gate.override_login(body.username, body.password)
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    set_session_cookie(response, user.id, override=True)
    return response


@router.get("/access")
async def access_decision(
    request: Request,
    user_uuid: Optional[str] = Query(default=None, alias="userUuid"),
    device_fingerprint: Optional[str] = Query(default=None, alias="deviceFingerprint"),
    gate: AccessGate = Depends(get_access_gate),
    session: Optional[DJSession] = Depends(get_dj_session),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Dict[str, Any]:
    """Which screen the caller should see and what it may do."""
    identity = identity_provider.resolve(
        request, {"userUuid": user_uuid, "deviceFingerprint": device_fingerprint}
    )
    decision = await gate.evaluate(identity, is_dj=session is not None)
    return decision.to_dict()
