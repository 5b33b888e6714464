############################################################
#
# requestbooth - Live Event Song Request Service
#
# auth.py: DJ authentication endpoints and session dependencies
#
############################################################

"""DJ authentication and authorization."""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import get_access_gate
from backend.app.core.access_gate import AccessGate
from backend.app.core.errors import AuthRequired
from backend.app.db import crud
from backend.app.db.models import DJUser
from backend.app.db.session import get_async_db
from backend.app.logging_config import get_logger
from backend.app.security.sessions import (
    DJSession,
    clear_session_cookie,
    get_session,
    set_session_cookie,
)

logger = get_logger(__name__)
router = APIRouter()


# Request/Response models
class LoginRequest(BaseModel):
    """DJ credentials."""
    username: Optional[str] = None
    password: Optional[str] = None


class AuthStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_dj: bool = Field(alias="isDJ")
    override_active: bool = Field(alias="overrideActive")


class DJUserResponse(BaseModel):
    id: int
    username: str


class LoginResponse(BaseModel):
    authenticated: bool
    user: DJUserResponse


async def get_dj_session(
    request: Request,
    db: AsyncSession = Depends(get_async_db),
) -> Optional[DJSession]:
    """
    Resolve the DJ session from the signed cookie.

    A session whose DJ account no longer exists is treated as absent.
    """
    session = get_session(request)
    if session is None or not session.is_dj:
        return None

    user = await crud.get_dj_user_by_id(db, session.dj_id)
    if user is None:
        logger.warning("stale_dj_session", dj_id=session.dj_id)
        return None
    return session


async def require_dj(
    session: Optional[DJSession] = Depends(get_dj_session),
) -> DJSession:
    """
    Require an authenticated DJ session.

    Raises:
        AuthRequired: No valid DJ session
    """
    if session is None:
        raise AuthRequired()
    return session


@router.get("/me", response_model=AuthStatusResponse)
async def auth_status(
    session: Optional[DJSession] = Depends(get_dj_session),
) -> AuthStatusResponse:
    """Report whether the caller holds a DJ session."""
    return AuthStatusResponse(
        is_dj=session is not None,
        override_active=bool(session and session.override),
    )


@router.post("/dj", response_model=LoginResponse)
async def dj_login(
    body: LoginRequest,
    response: Response,
    gate: AccessGate = Depends(get_access_gate),
) -> LoginResponse:
    """Log a DJ in and set the session cookie."""
    user: DJUser = await gate.authenticate_dj(body.username, body.password)
    set_session_cookie(response, user.id)
    return LoginResponse(
        authenticated=True,
        user=DJUserResponse(id=user.id, username=user.username),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def dj_logout() -> Response:
    """Drop the DJ session."""
    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    clear_session_cookie(response)
    return response
