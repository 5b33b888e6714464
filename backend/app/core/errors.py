############################################################
#
# requestbooth - Live Event Song Request Service
#
# errors.py: Domain error taxonomy with HTTP status mapping
#
############################################################

"""Domain errors raised by the core services.

Each error carries the HTTP status code it maps to and renders itself as
the JSON body the public client expects (``message`` plus optional extra
fields such as ``field`` or ``banReason``).
"""

from datetime import datetime
from typing import Any, Dict, Optional


class RequestBoothError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON error body."""
        return {"message": self.message}


class ValidationError(RequestBoothError):
    """Input failed validation; tagged with the offending field."""

    status_code = 400
    default_message = "Invalid request data"

    def __init__(self, field: Optional[str], message: Optional[str] = None):
        self.field = field
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class AuthRequired(RequestBoothError):
    status_code = 401
    default_message = "DJ authentication required"


class AuthInvalid(RequestBoothError):
    status_code = 401
    default_message = "Invalid credentials"


class NotFound(RequestBoothError):
    """A specific id did not resolve. Never raised for collections."""

    status_code = 404
    default_message = "Not found"


class BannedError(RequestBoothError):
    """The submitting user id has an active ban."""

    status_code = 403
    default_message = "You have been permanently banned for violating Terms of Service."

    def __init__(
        self,
        ban_reason: str,
        ban_timestamp: Optional[datetime],
        message: Optional[str] = None,
    ):
        self.ban_reason = ban_reason
        self.ban_timestamp = ban_timestamp
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "banned",
            "message": self.message,
            "banReason": self.ban_reason,
            "banTimestamp": self.ban_timestamp.isoformat() if self.ban_timestamp else None,
        }


class InvalidTransition(RequestBoothError):
    """A request status change that would leave a terminal state."""

    status_code = 409
    default_message = "Request status can no longer change"


class StoreError(RequestBoothError):
    """Opaque storage failure; details stay in the server log."""

    status_code = 500
    default_message = "Internal server error"
