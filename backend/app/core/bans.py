############################################################
#
# requestbooth - Live Event Song Request Service
#
# bans.py: Ban registry with lazy expiry of temporary bans
#
############################################################

"""Ban registry.

Bans are keyed by the anonymous user id. Temporary bans are not swept by
any background job; an expired ban is deleted the first time it is
checked, so a read can mutate the ban list.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ValidationError
from backend.app.core.identity import clean_identifier
from backend.app.core.metrics import BANS_ISSUED
from backend.app.db import crud
from backend.app.db.base import ensure_aware, utcnow
from backend.app.db.models import Ban
from backend.app.logging_config import get_logger

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def is_expired(ban: Ban, now: datetime) -> bool:
    """True when a temporary ban's expiry lies in the past."""
    if ban.is_permanent or ban.expires_at is None:
        return False
    return now > ensure_aware(ban.expires_at)


class BanRegistry:
    """Create, look up and expire bans."""

    def __init__(self, db: AsyncSession, now: Clock = utcnow):
        self.db = db
        self.now = now

    async def sweep_expired(self, ban: Ban) -> None:
        """Durably delete a ban that has run out."""
        await crud.delete_ban(self.db, ban.id)
        await self.db.commit()
        logger.info("ban_expired", ban_id=ban.id, user_uuid=ban.user_uuid)

    async def check_ban_status(self, user_uuid: Optional[str]) -> Optional[Ban]:
        """
        Return the active ban for a user id, if any.

        Every ban on record is considered, newest first. Expired temporary
        bans met along the way are deleted here.
        """
        user_uuid = clean_identifier(user_uuid)
        if not user_uuid:
            return None

        now = self.now()
        for ban in await crud.get_bans_for_user(self.db, user_uuid):
            if is_expired(ban, now):
                await self.sweep_expired(ban)
                continue
            return ban
        return None

    async def ban_user(
        self,
        user_uuid: Optional[str],
        ban_reason: Optional[str],
        device_fingerprint: Optional[str] = None,
        is_permanent: bool = True,
        expires_at: Optional[datetime] = None,
    ) -> Ban:
        """
        Ban a user id and purge every request it submitted.

        The ban is committed before the purge starts. If the purge fails the
        ban still stands and ``purge_requests`` can be called again.

        Raises:
            ValidationError: Missing user id, reason or temporary expiry
        """
        user_uuid = clean_identifier(user_uuid)
        if not user_uuid:
            raise ValidationError("userUuid", "A user id is required to ban")
        if not ban_reason or not ban_reason.strip():
            raise ValidationError("banReason", "Ban reason is required")
        if not is_permanent and expires_at is None:
            raise ValidationError("expiresAt", "Temporary bans need an expiry time")
        if expires_at is not None:
            # stored columns drop the offset, so keep everything in UTC
            expires_at = ensure_aware(expires_at).astimezone(timezone.utc)

        ban = await crud.create_ban(
            self.db,
            user_uuid=user_uuid,
            ban_reason=ban_reason.strip(),
            device_fingerprint=clean_identifier(device_fingerprint),
            is_permanent=is_permanent,
            expires_at=None if is_permanent else expires_at,
            ban_timestamp=self.now(),
        )
        await self.db.commit()
        BANS_ISSUED.labels(kind="permanent" if is_permanent else "temporary").inc()
        logger.info(
            "user_banned",
            ban_id=ban.id,
            user_uuid=ban.user_uuid,
            is_permanent=ban.is_permanent,
            expires_at=ban.expires_at.isoformat() if ban.expires_at else None,
        )

        await self.purge_requests(ban.user_uuid)
        return ban

    async def purge_requests(self, user_uuid: str) -> int:
        """Delete all requests from a user id. Safe to repeat."""
        removed = await crud.delete_requests_by_user(self.db, user_uuid)
        await self.db.commit()
        logger.info("banned_user_requests_purged", user_uuid=user_uuid, removed=removed)
        return removed

    async def list_bans(self) -> List[Ban]:
        return await crud.get_bans(self.db)

    async def delete_ban(self, ban_id: int) -> bool:
        deleted = await crud.delete_ban(self.db, ban_id)
        await self.db.commit()
        if deleted:
            logger.info("user_unbanned", ban_id=ban_id)
        return deleted
