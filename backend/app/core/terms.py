############################################################
#
# requestbooth - Live Event Song Request Service
#
# terms.py: Per-user terms of service acceptance ledger
#
############################################################

"""Terms of service acceptance ledger."""

from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ValidationError
from backend.app.db import crud
from backend.app.db.models import TermsAcceptance
from backend.app.logging_config import get_logger

logger = get_logger(__name__)


class TermsLedger:
    """At most one acceptance row per anonymous user id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def check_acceptance(self, user_uuid: Optional[str]) -> Optional[TermsAcceptance]:
        if not user_uuid:
            return None
        return await crud.get_terms_acceptance(self.db, user_uuid)

    async def record_acceptance(
        self,
        user_uuid: Optional[str],
        device_fingerprint: Optional[str] = None,
    ) -> Tuple[TermsAcceptance, bool]:
        """
        Record that a user accepted the terms.

        Idempotent: an existing row is returned untouched, including its
        original ``accepted_at``.

        Returns:
            Tuple of (acceptance row, created flag)
        """
        if not user_uuid or not user_uuid.strip():
            raise ValidationError("userUuid", "User ID is required")
        user_uuid = user_uuid.strip()

        existing = await crud.get_terms_acceptance(self.db, user_uuid)
        if existing:
            return existing, False

        try:
            acceptance = await crud.create_terms_acceptance(
                self.db, user_uuid, device_fingerprint=device_fingerprint
            )
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent accept for the same id
            await self.db.rollback()
            existing = await crud.get_terms_acceptance(self.db, user_uuid)
            if existing is None:
                raise
            return existing, False

        logger.info("terms_accepted", user_uuid=user_uuid)
        return acceptance, True

    async def clear_all(self) -> int:
        """Delete every acceptance so all guests must accept again."""
        removed = await crud.clear_terms_acceptance(self.db)
        await self.db.commit()
        logger.info("terms_cleared", removed=removed)
        return removed
