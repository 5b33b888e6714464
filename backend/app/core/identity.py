############################################################
#
# requestbooth - Live Event Song Request Service
#
# identity.py: Anonymous guest identity and device fingerprints
#
############################################################

"""Anonymous guest identity.

Guests never log in. The browser generates a random user id once and a
best-effort device fingerprint, caches both in local storage and sends
them with every call. Nothing here authenticates them; they are
correlation signals only. Ban and queue logic depend on the
``IdentityProvider`` protocol so a signed-token scheme can replace the
client-supplied one without touching them.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Protocol

from fastapi import Request

USER_UUID_HEADER = "X-User-Uuid"
FINGERPRINT_HEADER = "X-Device-Fingerprint"

MAX_IDENTIFIER_LENGTH = 64


@dataclass(frozen=True)
class Identity:
    """Who is calling, as far as we can tell."""

    user_uuid: Optional[str] = None
    device_fingerprint: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.user_uuid


class IdentityProvider(Protocol):
    """Resolves the caller identity for a request."""

    def resolve(self, request: Request, body: Optional[Mapping] = None) -> Identity:
        ...


def clean_identifier(value: Optional[object]) -> Optional[str]:
    """Strip an id and cap it at the stored column width; blank becomes None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:MAX_IDENTIFIER_LENGTH]


class ClientSuppliedIdentityProvider:
    """Trusts whatever id the client sends (body fields first, then headers)."""

    def resolve(self, request: Request, body: Optional[Mapping] = None) -> Identity:
        body = body or {}
        user_uuid = clean_identifier(body.get("userUuid")) or clean_identifier(
            request.headers.get(USER_UUID_HEADER)
        )
        fingerprint = clean_identifier(body.get("deviceFingerprint")) or clean_identifier(
            request.headers.get(FINGERPRINT_HEADER)
        )
        return Identity(user_uuid=user_uuid, device_fingerprint=fingerprint)


def generate_user_uuid() -> str:
    """Random v4 id, same shape the browser client generates."""
    return str(uuid.uuid4())


def fingerprint_hash(components: Iterable[object]) -> str:
    """
    Hash fingerprint components the way the browser client does.

    The client joins user agent, language, screen size, timezone offset and
    a canvas signature with ``|`` and runs a 32-bit ``hash * 31 + char``
    string hash over UTF-16 code units. The result is the hex form of the
    absolute value.

    Args:
        components: Values to join, in client order

    Returns:
        Lowercase hex string
    """
    joined = "|".join(str(c) for c in components)
    data = joined.encode("utf-16-le")

    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = ((h << 5) - h + code_unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return format(abs(h), "x")


_default_provider: IdentityProvider = ClientSuppliedIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    """FastAPI dependency returning the configured identity provider."""
    return _default_provider
