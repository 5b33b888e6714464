############################################################
#
# requestbooth - Live Event Song Request Service
#
# access_gate.py: Access state machine and request submission gate
#
############################################################

"""Access gate.

Combines the ban registry, terms ledger, system status store and request
queue into the decisions the client acts on: which screen to show, which
routes are reachable, whether a request may be submitted, and whether the
terms must be accepted first.

State priority, highest first::

    offline > maintenance > banned > requests_disabled > normal
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.bans import BanRegistry, Clock
from backend.app.core.errors import (
    AuthInvalid,
    AuthRequired,
    BannedError,
    ValidationError,
)
from backend.app.core.identity import Identity
from backend.app.core.metrics import EVENT_RESETS, REQUESTS_SUBMITTED, SUBMISSIONS_REJECTED
from backend.app.core.request_queue import RequestQueue, RequestSubmission, validate_submission
from backend.app.core.system_status import (
    DatabaseSettingsBackend,
    SystemStatus,
    SystemStatusStore,
)
from backend.app.core.terms import TermsLedger
from backend.app.db import crud
from backend.app.db.base import ensure_aware, utcnow
from backend.app.db.models import Ban, DJUser, REQUESTS_ENABLED_KEY, SongRequest
from backend.app.logging_config import get_logger
from backend.app.security.password_hash import hash_password, verify_password
from backend.app.settings import Settings, get_settings

logger = get_logger(__name__)

BAN_MESSAGE = "You have been permanently banned for violating Terms of Service."
TEMPORARY_BAN_MESSAGE = "You have been temporarily banned for violating Terms of Service."

ALL_ROUTES = ["/", "/dj", "/karaoke/tv", "/support", "/download", "/terms", "/privacy"]
MAINTENANCE_ROUTES = ["/dj", "/karaoke/tv", "/support", "/download", "/terms", "/privacy"]
REQUESTS_DISABLED_ROUTES = ["/dj", "/karaoke/tv", "/support", "/download", "/terms", "/privacy"]


class AccessState(str, Enum):
    """Client screen states."""
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
    BANNED = "banned"
    REQUESTS_DISABLED = "requests_disabled"
    NORMAL = "normal"


def ban_message(ban: Ban) -> str:
    return BAN_MESSAGE if ban.is_permanent else TEMPORARY_BAN_MESSAGE


def serialize_ban(ban: Ban) -> Dict[str, Any]:
    """Ban in the camelCase shape the client reads."""
    ban_timestamp = ensure_aware(ban.ban_timestamp)
    expires_at = ensure_aware(ban.expires_at)
    return {
        "id": ban.id,
        "userUuid": ban.user_uuid,
        "deviceFingerprint": ban.device_fingerprint,
        "banReason": ban.ban_reason,
        "banTimestamp": ban_timestamp.isoformat() if ban_timestamp else None,
        "isPermanent": ban.is_permanent,
        "expiresAt": expires_at.isoformat() if expires_at else None,
    }


@dataclass
class AccessDecision:
    """What a caller may see and do right now."""

    state: AccessState
    status: SystemStatus
    is_dj: bool = False
    allowed_routes: List[str] = field(default_factory=list)
    can_submit: bool = False
    terms_required: bool = False
    override_available: bool = False
    ban: Optional[Dict[str, Any]] = None
    ban_popup_seconds: int = 5
    queue_poll_seconds: int = 3
    status_poll_seconds: int = 10

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "isDJ": self.is_dj,
            "allowedRoutes": list(self.allowed_routes),
            "canSubmit": self.can_submit,
            "termsRequired": self.terms_required,
            "overrideAvailable": self.override_available,
            "ban": self.ban,
            "banPopupSeconds": self.ban_popup_seconds,
            "pollIntervals": {
                "queueSeconds": self.queue_poll_seconds,
                "statusSeconds": self.status_poll_seconds,
            },
            "status": self.status.to_dict(),
        }


class AccessGate:
    """Orchestrates bans, terms, system status and the request queue."""

    def __init__(
        self,
        db: AsyncSession,
        status_store: Optional[SystemStatusStore] = None,
        settings: Optional[Settings] = None,
        now: Clock = utcnow,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.now = now
        self.bans = BanRegistry(db, now=now)
        self.terms = TermsLedger(db)
        self.queue = RequestQueue(db)
        self.status_store = status_store or SystemStatusStore(
            DatabaseSettingsBackend(db), karaoke_enabled=self.settings.karaoke_enabled
        )

    def _decision(self, state: AccessState, status: SystemStatus, is_dj: bool) -> AccessDecision:
        return AccessDecision(
            state=state,
            status=status,
            is_dj=is_dj,
            ban_popup_seconds=self.settings.ban_popup_seconds,
            queue_poll_seconds=self.settings.queue_poll_seconds,
            status_poll_seconds=self.settings.status_poll_seconds,
        )

    async def evaluate(
        self,
        identity: Identity,
        is_dj: bool,
        backend_reachable: bool = True,
    ) -> AccessDecision:
        """Compute the access state for a caller."""
        if not backend_reachable:
            return self._decision(AccessState.OFFLINE, SystemStatus(), is_dj)

        status = await self.status_store.get_status()

        if status.maintenance_mode and not is_dj:
            decision = self._decision(AccessState.MAINTENANCE, status, is_dj)
            decision.allowed_routes = list(MAINTENANCE_ROUTES)
            return decision

        ban = await self.bans.check_ban_status(identity.user_uuid)
        if ban is not None:
            decision = self._decision(AccessState.BANNED, status, is_dj)
            decision.ban = serialize_ban(ban)
            return decision

        if not status.requests_enabled and not is_dj:
            decision = self._decision(AccessState.REQUESTS_DISABLED, status, is_dj)
            decision.allowed_routes = list(REQUESTS_DISABLED_ROUTES)
            decision.override_available = True
            return decision

        decision = self._decision(AccessState.NORMAL, status, is_dj)
        decision.allowed_routes = list(ALL_ROUTES)
        decision.can_submit = True
        if status.requests_enabled and not is_dj:
            acceptance = await self.terms.check_acceptance(identity.user_uuid)
            decision.terms_required = acceptance is None
        return decision

    def _raise_if_banned(self, ban: Optional[Ban]) -> None:
        if ban is None:
            return
        SUBMISSIONS_REJECTED.labels(reason="banned").inc()
        logger.warning("banned_submission_rejected", ban_id=ban.id, user_uuid=ban.user_uuid)
        raise BannedError(
            ban_reason=ban.ban_reason,
            ban_timestamp=ensure_aware(ban.ban_timestamp),
            message=ban_message(ban),
        )

    async def submit_request(
        self,
        identity: Identity,
        submission: RequestSubmission,
    ) -> SongRequest:
        """
        Submit a song request on behalf of a caller.

        The ban check runs before validation so a banned user never learns
        which field was wrong. The ban is read again right before the insert.

        Raises:
            BannedError: The user id has an active ban
            ValidationError: A field failed validation
        """
        self._raise_if_banned(await self.bans.check_ban_status(identity.user_uuid))

        submission.user_uuid = identity.user_uuid
        submission.device_fingerprint = identity.device_fingerprint
        try:
            values = validate_submission(submission)
        except ValidationError:
            SUBMISSIONS_REJECTED.labels(reason="validation").inc()
            raise

        self._raise_if_banned(await self.bans.check_ban_status(identity.user_uuid))

        request = await self.queue.insert(values, submission.song_id)
        await self.db.commit()
        REQUESTS_SUBMITTED.labels(type=request.request_type.value).inc()
        return await crud.get_request(self.db, request.id)

    async def ban_user(
        self,
        user_uuid: Optional[str],
        ban_reason: Optional[str],
        device_fingerprint: Optional[str] = None,
        is_permanent: bool = True,
        expires_at: Optional[datetime] = None,
    ) -> Ban:
        return await self.bans.ban_user(
            user_uuid,
            ban_reason,
            device_fingerprint=device_fingerprint,
            is_permanent=is_permanent,
            expires_at=expires_at,
        )

    async def apply_setting(self, key: Optional[str], value: Optional[str], is_dj: bool) -> None:
        """
        Change a system setting as a DJ.

        Turning requests off resets the event: terms acceptances are
        cleared, then all requests, then the setting is stored. Each step
        commits on its own and is safe to repeat.

        Raises:
            AuthRequired: Caller is not a DJ
            ValidationError: Key or value missing
        """
        if not is_dj:
            raise AuthRequired()
        if not key:
            raise ValidationError("key", "Key and value are required")
        if value is None:
            raise ValidationError("value", "Key and value are required")

        if key == REQUESTS_ENABLED_KEY and value == "false":
            terms_removed = await self.terms.clear_all()
            requests_removed = await self.queue.clear_all()
            EVENT_RESETS.inc()
            logger.info(
                "event_reset",
                terms_removed=terms_removed,
                requests_removed=requests_removed,
            )

        await self.status_store.set(key, value)
        logger.info("system_setting_changed", key=key, value=value)

    async def authenticate_dj(self, username: Optional[str], password: Optional[str]) -> DJUser:
        """
        Check DJ credentials.

        Raises:
            ValidationError: Missing username or password
            AuthInvalid: Wrong credentials
        """
        if not username or not password:
            raise ValidationError(None, "Username and password are required")

        user = await crud.get_dj_user_by_username(self.db, username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("dj_login_failed", username=username)
            raise AuthInvalid()

        logger.info("dj_login", dj_id=user.id, username=user.username)
        return user

    async def override_login(self, username: Optional[str], password: Optional[str]) -> DJUser:
        """
        Authenticate a DJ while requests are disabled.

        Does not touch ``requests_enabled``; the caller only gains a DJ
        session that bypasses the requests-disabled screen.
        """
        user = await self.authenticate_dj(username, password)
        logger.info("requests_disabled_override", dj_id=user.id)
        return user


async def ensure_initial_dj_user(db: AsyncSession, settings: Optional[Settings] = None) -> Optional[DJUser]:
    """
    Create the first DJ account from configuration.

    Does nothing when any DJ user already exists. Without a configured
    password no account is created and a warning is logged.
    """
    settings = settings or get_settings()

    if await crud.count_dj_users(db) > 0:
        return None

    if not settings.initial_dj_password:
        logger.warning(
            "initial_dj_password_missing",
            username=settings.initial_dj_username,
        )
        return None

    user = await crud.create_dj_user(
        db,
        username=settings.initial_dj_username,
        password_hash=hash_password(settings.initial_dj_password),
    )
    await db.commit()
    logger.info("initial_dj_user_created", username=user.username)
    return user
