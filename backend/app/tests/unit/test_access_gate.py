############################################################
#
# requestbooth - Live Event Song Request Service
#
# test_access_gate.py: Unit tests for the access state machine
#
############################################################

"""Unit tests for access decisions, gated submission and event reset."""

import pytest
from datetime import timedelta

from backend.app.core.access_gate import (
    MAINTENANCE_ROUTES,
    AccessGate,
    AccessState,
    ensure_initial_dj_user,
)
from backend.app.core.errors import AuthInvalid, AuthRequired, BannedError, ValidationError
from backend.app.core.identity import Identity
from backend.app.core.request_queue import RequestSubmission
from backend.app.core.system_status import InMemorySettingsBackend, SystemStatusStore
from backend.app.db import crud
from backend.app.db.models import MAINTENANCE_MODE_KEY, REQUESTS_ENABLED_KEY, RequestStatus

GUEST = Identity(user_uuid="guest-1", device_fingerprint="fp-1")


def _gate(db, test_settings, clock, **stored) -> AccessGate:
    store = SystemStatusStore(InMemorySettingsBackend(stored), karaoke_enabled=False)
    return AccessGate(db, status_store=store, settings=test_settings, now=clock)


def _valid() -> RequestSubmission:
    return RequestSubmission(requester_name="Al", song_title="OK", song_artist="OK")


class TestEvaluate:
    """Tests for state priority."""

    @pytest.mark.asyncio
    async def test_offline_wins(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{MAINTENANCE_MODE_KEY: "true"})
        decision = await gate.evaluate(GUEST, is_dj=False, backend_reachable=False)
        assert decision.state == AccessState.OFFLINE
        assert decision.can_submit is False

    @pytest.mark.asyncio
    async def test_maintenance_beats_ban(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{MAINTENANCE_MODE_KEY: "true"})
        await gate.ban_user(GUEST.user_uuid, "spam")

        decision = await gate.evaluate(GUEST, is_dj=False)

        assert decision.state == AccessState.MAINTENANCE
        assert decision.allowed_routes == MAINTENANCE_ROUTES
        assert "/" not in decision.allowed_routes
        assert decision.can_submit is False

    @pytest.mark.asyncio
    async def test_dj_bypasses_maintenance(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{MAINTENANCE_MODE_KEY: "true"})
        decision = await gate.evaluate(Identity(), is_dj=True)
        assert decision.state == AccessState.NORMAL
        assert decision.terms_required is False

    @pytest.mark.asyncio
    async def test_ban_beats_requests_disabled(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{REQUESTS_ENABLED_KEY: "false"})
        await gate.ban_user(GUEST.user_uuid, "spam")

        decision = await gate.evaluate(GUEST, is_dj=False)

        assert decision.state == AccessState.BANNED
        assert decision.ban["banReason"] == "spam"
        assert decision.ban["isPermanent"] is True
        assert decision.ban_popup_seconds == 5
        assert decision.allowed_routes == []

    @pytest.mark.asyncio
    async def test_requests_disabled_offers_override(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{REQUESTS_ENABLED_KEY: "false"})
        decision = await gate.evaluate(GUEST, is_dj=False)

        assert decision.state == AccessState.REQUESTS_DISABLED
        assert decision.override_available is True
        assert decision.can_submit is False
        assert decision.terms_required is False
        assert "/terms" in decision.allowed_routes

    @pytest.mark.asyncio
    async def test_dj_not_blocked_by_requests_disabled(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{REQUESTS_ENABLED_KEY: "false"})
        decision = await gate.evaluate(GUEST, is_dj=True)
        assert decision.state == AccessState.NORMAL
        assert decision.terms_required is False

    @pytest.mark.asyncio
    async def test_normal_requires_terms_until_accepted(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)

        decision = await gate.evaluate(GUEST, is_dj=False)
        assert decision.state == AccessState.NORMAL
        assert decision.can_submit is True
        assert decision.terms_required is True

        await gate.terms.record_acceptance(GUEST.user_uuid)
        decision = await gate.evaluate(GUEST, is_dj=False)
        assert decision.terms_required is False

    @pytest.mark.asyncio
    async def test_expired_ban_falls_through(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        await gate.ban_user(
            GUEST.user_uuid, "cool off", is_permanent=False, expires_at=clock() + timedelta(hours=1)
        )
        assert (await gate.evaluate(GUEST, is_dj=False)).state == AccessState.BANNED

        clock.advance(timedelta(hours=2))
        assert (await gate.evaluate(GUEST, is_dj=False)).state == AccessState.NORMAL

    @pytest.mark.asyncio
    async def test_decision_serializes_poll_hints(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        body = (await gate.evaluate(GUEST, is_dj=False)).to_dict()

        assert body["state"] == "normal"
        assert body["pollIntervals"] == {"queueSeconds": 3, "statusSeconds": 10}
        assert body["status"]["requestsEnabled"] is True


class TestSubmitRequest:
    """Tests for gated submission."""

    @pytest.mark.asyncio
    async def test_submission_records_identity(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        request = await gate.submit_request(GUEST, _valid())

        assert request.status == RequestStatus.PENDING
        assert request.user_uuid == "guest-1"
        assert request.device_fingerprint == "fp-1"

    @pytest.mark.asyncio
    async def test_ban_checked_before_validation(self, db, test_settings, clock):
        """A banned user with an invalid payload gets BannedError."""
        gate = _gate(db, test_settings, clock)
        await gate.ban_user(GUEST.user_uuid, "spam")

        invalid = RequestSubmission(requester_name="A", song_title="", song_artist="")
        with pytest.raises(BannedError) as exc_info:
            await gate.submit_request(GUEST, invalid)

        assert exc_info.value.ban_reason == "spam"
        assert exc_info.value.ban_timestamp is not None
        assert exc_info.value.to_dict()["status"] == "banned"
        assert await gate.queue.list() == []

    @pytest.mark.asyncio
    async def test_ban_created_mid_submission_rejected(self, db, test_settings, clock, monkeypatch):
        """The second ban read, right before insert, still catches a ban."""
        gate = _gate(db, test_settings, clock)
        await gate.ban_user(GUEST.user_uuid, "spam")

        real_check = gate.bans.check_ban_status
        calls = []

        async def first_check_misses(user_uuid):
            calls.append(user_uuid)
            if len(calls) == 1:
                return None
            return await real_check(user_uuid)

        monkeypatch.setattr(gate.bans, "check_ban_status", first_check_misses)
        with pytest.raises(BannedError):
            await gate.submit_request(GUEST, _valid())
        assert await gate.queue.list() == []

    @pytest.mark.asyncio
    async def test_permanent_ban_outlives_newer_temporary_ban(self, db, test_settings, clock):
        """An expired temporary ban does not hide an older permanent one."""
        gate = _gate(db, test_settings, clock)
        await gate.ban_user(GUEST.user_uuid, "spam")
        clock.advance(timedelta(minutes=1))
        await gate.ban_user(
            GUEST.user_uuid,
            "abuse",
            is_permanent=False,
            expires_at=clock() + timedelta(hours=1),
        )
        clock.advance(timedelta(hours=2))

        decision = await gate.evaluate(GUEST, is_dj=False)
        assert decision.state == AccessState.BANNED
        assert decision.ban["banReason"] == "spam"

        with pytest.raises(BannedError) as exc_info:
            await gate.submit_request(GUEST, _valid())
        assert exc_info.value.ban_reason == "spam"

    @pytest.mark.asyncio
    async def test_validation_error_for_allowed_user(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        with pytest.raises(ValidationError) as exc_info:
            await gate.submit_request(
                GUEST, RequestSubmission(requester_name="A", song_title="OK", song_artist="OK")
            )
        assert exc_info.value.field == "requesterName"


class TestApplySetting:
    """Tests for DJ setting changes and the event reset cascade."""

    @pytest.mark.asyncio
    async def test_requires_dj(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        with pytest.raises(AuthRequired):
            await gate.apply_setting(REQUESTS_ENABLED_KEY, "false", is_dj=False)

    @pytest.mark.asyncio
    async def test_missing_value_rejected(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        with pytest.raises(ValidationError):
            await gate.apply_setting(REQUESTS_ENABLED_KEY, None, is_dj=True)
        with pytest.raises(ValidationError):
            await gate.apply_setting("", "true", is_dj=True)

    @pytest.mark.asyncio
    async def test_empty_value_is_stored(self, db, test_settings, clock):
        """Only a missing value is rejected; an empty string is a value."""
        gate = _gate(db, test_settings, clock)
        await gate.apply_setting(MAINTENANCE_MODE_KEY, "", is_dj=True)

        assert await gate.status_store.get(MAINTENANCE_MODE_KEY) == ""
        assert (await gate.status_store.get_status()).maintenance_mode is False

    @pytest.mark.asyncio
    async def test_disabling_requests_clears_terms_and_queue(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        await gate.terms.record_acceptance("guest-1")
        await gate.terms.record_acceptance("guest-2")
        await gate.submit_request(GUEST, _valid())
        await gate.submit_request(Identity(user_uuid="guest-2"), _valid())

        await gate.apply_setting(REQUESTS_ENABLED_KEY, "false", is_dj=True)

        assert await crud.count_terms_acceptance(db) == 0
        assert await gate.queue.list() == []
        status = await gate.status_store.get_status()
        assert status.requests_enabled is False

    @pytest.mark.asyncio
    async def test_other_settings_do_not_cascade(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        await gate.terms.record_acceptance("guest-1")
        await gate.submit_request(GUEST, _valid())

        await gate.apply_setting(MAINTENANCE_MODE_KEY, "true", is_dj=True)
        await gate.apply_setting(REQUESTS_ENABLED_KEY, "true", is_dj=True)

        assert await crud.count_terms_acceptance(db) == 1
        assert len(await gate.queue.list()) == 1
        assert (await gate.status_store.get_status()).maintenance_mode is True


class TestDJAuthentication:
    """Tests for DJ login and the initial account."""

    @pytest.mark.asyncio
    async def test_override_login(self, db, dj_user, dj_credentials, test_settings, clock):
        gate = _gate(db, test_settings, clock, **{REQUESTS_ENABLED_KEY: "false"})
        user = await gate.override_login(*dj_credentials)

        assert user.id == dj_user.id
        # override never turns requests back on
        assert (await gate.status_store.get_status()).requests_enabled is False

    @pytest.mark.asyncio
    async def test_wrong_password(self, db, dj_user, dj_credentials, test_settings, clock):
        username, password = dj_credentials
        gate = _gate(db, test_settings, clock)
        with pytest.raises(AuthInvalid):
            await gate.authenticate_dj(username, "wrong")
        with pytest.raises(AuthInvalid):
            await gate.authenticate_dj("nobody", password)

    @pytest.mark.asyncio
    async def test_missing_credentials(self, db, test_settings, clock):
        gate = _gate(db, test_settings, clock)
        with pytest.raises(ValidationError):
            await gate.authenticate_dj("", "")

    @pytest.mark.asyncio
    async def test_initial_dj_created_once(self, db, test_settings):
        settings = test_settings.model_copy(
            update={"initial_dj_username": "host", "initial_dj_password": "first-night"}
        )

        created = await ensure_initial_dj_user(db, settings)
        assert created is not None
        assert created.username == "host"
        assert await ensure_initial_dj_user(db, settings) is None
        assert await crud.count_dj_users(db) == 1

    @pytest.mark.asyncio
    async def test_initial_dj_skipped_without_password(self, db, test_settings):
        settings = test_settings.model_copy(update={"initial_dj_password": None})
        assert await ensure_initial_dj_user(db, settings) is None
        assert await crud.count_dj_users(db) == 0
