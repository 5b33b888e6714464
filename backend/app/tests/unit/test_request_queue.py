############################################################
#
# requestbooth - Live Event Song Request Service
#
# test_request_queue.py: Unit tests for the song request queue
#
############################################################

"""Unit tests for request validation, lifecycle and stats."""

import pytest
from sqlalchemy import update

from backend.app.core.errors import InvalidTransition, ValidationError
from backend.app.core.request_queue import (
    RequestQueue,
    RequestSubmission,
    parse_request_type,
    validate_submission,
)
from backend.app.db import crud
from backend.app.db.models import RequestStatus, RequestType, SongRequest, SongType, SongVersion


def _submission(**overrides) -> RequestSubmission:
    values = dict(requester_name="Al", song_title="OK", song_artist="OK")
    values.update(overrides)
    return RequestSubmission(**values)


class TestValidation:
    """Tests for submission validation."""

    def test_short_name_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(requester_name="A"))
        assert exc_info.value.field == "requesterName"

    def test_first_failing_field_reported(self):
        """All three fields invalid: the name is reported."""
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(
                _submission(requester_name="", song_title="", song_artist="")
            )
        assert exc_info.value.field == "requesterName"

    def test_title_checked_before_artist(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(song_title=" x ", song_artist="y"))
        assert exc_info.value.field == "songTitle"

    def test_artist_checked(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(song_artist=None))
        assert exc_info.value.field == "songArtist"

    def test_whitespace_is_trimmed_before_length_check(self):
        with pytest.raises(ValidationError):
            validate_submission(_submission(requester_name="  A  "))
        values = validate_submission(_submission(requester_name="  Al  "))
        assert values["requester_name"] == "Al"

    @pytest.mark.parametrize(
        "field,attr,length",
        [("requesterName", "requester_name", 51), ("songTitle", "song_title", 101)],
    )
    def test_maximum_lengths(self, field, attr, length):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(**{attr: "x" * length}))
        assert exc_info.value.field == field

    def test_defaults(self):
        values = validate_submission(_submission())
        assert values["song_version"] == SongVersion.STANDARD
        assert values["request_type"] == RequestType.DJ
        assert values["is_manual_request"] is False
        assert values["notes"] is None

    def test_bad_version_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(song_version="Remix"))
        assert exc_info.value.field == "songVersion"

    def test_bad_request_type_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission(_submission(request_type="radio"))
        assert exc_info.value.field == "requestType"

    def test_parse_request_type(self):
        assert parse_request_type(None) is None
        assert parse_request_type("") is None
        assert parse_request_type("karaoke") == RequestType.KARAOKE
        with pytest.raises(ValidationError):
            parse_request_type("radio")


class TestSubmit:
    """Tests for inserting requests."""

    @pytest.mark.asyncio
    async def test_minimal_request_accepted_as_pending(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())

        assert request.id is not None
        assert request.status == RequestStatus.PENDING
        assert request.requester_name == "Al"
        assert request.song is None

    @pytest.mark.asyncio
    async def test_linked_song_counter_incremented(self, db):
        song = await crud.create_song(db, "Dancing Queen", "ABBA")
        await db.commit()

        queue = RequestQueue(db)
        request = await queue.submit(_submission(song_id=song.id))

        assert request.song_id == song.id
        assert request.song.title == "Dancing Queen"
        refreshed = await crud.get_song(db, song.id)
        await db.refresh(refreshed)
        assert refreshed.request_count == 1

    @pytest.mark.asyncio
    async def test_dangling_song_id_stored_as_null(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission(song_id=9999))
        assert request.song_id is None

    @pytest.mark.asyncio
    async def test_list_in_submission_order_and_filtered(self, db):
        queue = RequestQueue(db)
        first = await queue.submit(_submission(song_title="First"))
        second = await queue.submit(_submission(song_title="Second", request_type="karaoke"))
        third = await queue.submit(_submission(song_title="Third"))

        assert [r.id for r in await queue.list()] == [first.id, second.id, third.id]
        assert [r.id for r in await queue.list(RequestType.DJ)] == [first.id, third.id]
        assert [r.id for r in await queue.list(RequestType.KARAOKE)] == [second.id]


class TestStatusLifecycle:
    """Tests for status transitions."""

    @pytest.mark.asyncio
    async def test_pending_to_played(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())

        updated = await queue.update_status(request.id, "played")
        assert updated.status == RequestStatus.PLAYED

    @pytest.mark.asyncio
    @pytest.mark.parametrize("terminal", ["played", "skipped", "removed"])
    async def test_terminal_status_is_final(self, db, terminal):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        await queue.update_status(request.id, terminal)

        for target in ("pending", "played", "skipped", "removed"):
            if target == terminal:
                continue
            with pytest.raises(InvalidTransition):
                await queue.update_status(request.id, target)

        again = await queue.update_status(request.id, terminal)
        assert again.status.value == terminal

    @pytest.mark.asyncio
    async def test_pending_to_pending_is_noop(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        updated = await queue.update_status(request.id, "pending")
        assert updated.status == RequestStatus.PENDING

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        with pytest.raises(ValidationError) as exc_info:
            await queue.update_status(request.id, "finished")
        assert exc_info.value.field == "status"

    @pytest.mark.asyncio
    async def test_concurrent_transition_applied_once(self, db, monkeypatch):
        """A DJ acting on a stale read loses to the writer that got there first."""
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        real_get = crud.get_request
        raced = []

        async def stale_get(session, request_id):
            row = await real_get(session, request_id)
            if not raced:
                raced.append(request_id)
                await session.execute(
                    update(SongRequest)
                    .where(SongRequest.id == request_id)
                    .values(status=RequestStatus.PLAYED)
                    .execution_options(synchronize_session=False)
                )
                await session.commit()
            return row

        monkeypatch.setattr(crud, "get_request", stale_get)
        with pytest.raises(InvalidTransition):
            await queue.update_status(request.id, "skipped")

        monkeypatch.setattr(crud, "get_request", real_get)
        current = await crud.get_request(db, request.id)
        assert current.status == RequestStatus.PLAYED

    @pytest.mark.asyncio
    async def test_unknown_id_returns_none(self, db):
        queue = RequestQueue(db)
        assert await queue.update_status(4242, "played") is None


class TestBulkOperations:
    """Tests for deletes, clears and stats."""

    @pytest.mark.asyncio
    async def test_delete(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        assert await queue.delete(request.id) is True
        assert await queue.delete(request.id) is False

    @pytest.mark.asyncio
    async def test_clear_completed_keeps_pending_and_removed(self, db):
        queue = RequestQueue(db)
        pending = await queue.submit(_submission(song_title="Pending"))
        played = await queue.submit(_submission(song_title="Played"))
        skipped = await queue.submit(_submission(song_title="Skipped"))
        removed = await queue.submit(_submission(song_title="Removed"))
        await queue.update_status(played.id, "played")
        await queue.update_status(skipped.id, "skipped")
        await queue.update_status(removed.id, "removed")

        assert await queue.clear_completed() == 2
        remaining = {r.id for r in await queue.list()}
        assert remaining == {pending.id, removed.id}

    @pytest.mark.asyncio
    async def test_clear_all_scoped_by_type(self, db):
        queue = RequestQueue(db)
        await queue.submit(_submission())
        karaoke = await queue.submit(_submission(request_type="karaoke"))

        assert await queue.clear_all(RequestType.DJ) == 1
        assert [r.id for r in await queue.list()] == [karaoke.id]

    @pytest.mark.asyncio
    async def test_stats_invariant(self, db):
        """total == pending + played + skipped + removed; completed == played."""
        queue = RequestQueue(db)
        ids = []
        for i in range(6):
            request = await queue.submit(
                _submission(song_title=f"Song {i}", is_manual_request=(i % 2 == 0))
            )
            ids.append(request.id)
        await queue.update_status(ids[0], "played")
        await queue.update_status(ids[1], "played")
        await queue.update_status(ids[2], "skipped")
        await queue.update_status(ids[3], "removed")

        stats = await queue.stats()
        counts = await crud.count_requests_by_status(db)

        assert stats.total_requests == 6
        assert stats.pending == 2
        assert stats.completed == 2
        assert stats.manual == 3
        assert stats.total_requests == (
            counts["pending"] + counts["played"] + counts["skipped"] + counts["removed"]
        )
        assert stats.to_dict() == {
            "totalRequests": 6,
            "pending": 2,
            "completed": 2,
            "manual": 3,
        }

    @pytest.mark.asyncio
    async def test_stats_empty(self, db):
        stats = await RequestQueue(db).stats(RequestType.KARAOKE)
        assert stats.total_requests == 0
        assert stats.completed == 0


class TestAddToLibrary:
    """Tests for turning manual requests into catalog songs."""

    @pytest.mark.asyncio
    async def test_manual_request_becomes_song(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(
            _submission(song_title="Obscure B-Side", request_type="karaoke", is_manual_request=True)
        )

        song = await queue.add_to_library(request.id)

        assert song is not None
        assert song.title == "Obscure B-Side"
        assert song.song_type == SongType.KARAOKE
        linked = await crud.get_request(db, request.id)
        assert linked.song_id == song.id
        assert linked.is_manual_request is False

    @pytest.mark.asyncio
    async def test_non_manual_request_ignored(self, db):
        queue = RequestQueue(db)
        request = await queue.submit(_submission())
        assert await queue.add_to_library(request.id) is None
        assert await queue.add_to_library(9999) is None
