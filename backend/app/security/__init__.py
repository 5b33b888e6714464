############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: Security utilities package exports
#
############################################################

"""Security utilities for RequestBooth."""

from backend.app.security.password_hash import hash_password, verify_password
from backend.app.security.sessions import (
    DJSession,
    clear_session_cookie,
    get_session,
    set_session_cookie,
)

__all__ = [
    "hash_password",
    "verify_password",
    "DJSession",
    "get_session",
    "set_session_cookie",
    "clear_session_cookie",
]
