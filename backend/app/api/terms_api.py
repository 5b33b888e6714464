############################################################
#
# requestbooth - Live Event Song Request Service
#
# terms_api.py: Terms of service acceptance endpoints
#
############################################################

"""Terms of service endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response, status

from backend.app.api.auth import require_dj
from backend.app.api.deps import get_access_gate
from backend.app.api.schemas import CamelModel, TermsAcceptanceResponse
from backend.app.core.access_gate import AccessGate
from backend.app.core.identity import IdentityProvider, get_identity_provider
from backend.app.security.sessions import DJSession

router = APIRouter()


class AcceptRequest(CamelModel):
    user_uuid: Optional[str] = None
    device_fingerprint: Optional[str] = None


@router.post("/accept", response_model=TermsAcceptanceResponse)
async def accept_terms(
    body: AcceptRequest,
    request: Request,
    response: Response,
    gate: AccessGate = Depends(get_access_gate),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    """Record acceptance. 201 on first accept, 200 when already accepted."""
    identity = identity_provider.resolve(request, body.model_dump(by_alias=True))
    acceptance, created = await gate.terms.record_acceptance(
        identity.user_uuid, identity.device_fingerprint
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return acceptance


@router.get("/check/{user_uuid}")
async def check_terms(
    user_uuid: str,
    gate: AccessGate = Depends(get_access_gate),
) -> Dict[str, Any]:
    acceptance = await gate.terms.check_acceptance(user_uuid)
    return {
        "hasAccepted": acceptance is not None,
        "acceptance": (
            TermsAcceptanceResponse.model_validate(acceptance).model_dump(mode="json", by_alias=True)
            if acceptance
            else None
        ),
    }


@router.delete("/clear")
async def clear_terms(
    gate: AccessGate = Depends(get_access_gate),
    _dj: DJSession = Depends(require_dj),
) -> Dict[str, Any]:
    """Force every guest to accept the terms again."""
    removed = await gate.terms.clear_all()
    return {"message": "All terms acceptances cleared", "cleared": removed}
