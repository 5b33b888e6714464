############################################################
#
# requestbooth - Live Event Song Request Service
#
# sessions.py: Signed cookie sessions for DJ authentication
#
############################################################

"""DJ session management using signed cookies."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from backend.app.settings import get_settings

DJ_ROLE = "dj"


@dataclass(frozen=True)
class DJSession:
    """Decoded contents of a DJ session cookie."""

    dj_id: int
    role: str = DJ_ROLE
    override: bool = False

    @property
    def is_dj(self) -> bool:
        return self.role == DJ_ROLE


def _get_session_serializer() -> URLSafeTimedSerializer:
    """Get a timed serializer for session cookies."""
    settings = get_settings()
    return URLSafeTimedSerializer(settings.secret_key, salt="session")


def get_session(request: Request) -> Optional[DJSession]:
    """Decode the DJ session from the request cookie, if valid."""
    settings = get_settings()
    session_data = request.cookies.get(settings.session_cookie_name)
    if not session_data:
        return None
    try:
        payload = _get_session_serializer().loads(
            session_data, max_age=settings.session_max_age_seconds
        )
        return DJSession(
            dj_id=int(payload["id"]),
            role=str(payload.get("role", "")),
            override=bool(payload.get("override", False)),
        )
    except (BadSignature, SignatureExpired, KeyError, TypeError, ValueError):
        return None


def set_session_cookie(response: Response, dj_id: int, override: bool = False) -> None:
    """Set signed session cookie."""
    settings = get_settings()
    signed_value = _get_session_serializer().dumps(
        {"id": dj_id, "role": DJ_ROLE, "override": override}
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=signed_value,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite=settings.session_cookie_samesite,
        max_age=settings.session_max_age_seconds,
    )


def clear_session_cookie(response: Response) -> None:
    """Clear session cookie."""
    response.delete_cookie(key=get_settings().session_cookie_name)
