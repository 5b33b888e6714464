############################################################
#
# requestbooth - Live Event Song Request Service
#
# crud.py: Database CRUD operations for all entities
#
############################################################

"""Database CRUD operations for RequestBooth.

Functions flush but never commit; commit boundaries belong to the
callers in ``backend.app.core`` so multi-step operations can pick
their own durability points.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.db.base import utcnow
from backend.app.db.models import (
    Ban,
    DJUser,
    RequestStatus,
    RequestType,
    Song,
    SongRequest,
    SongType,
    SongVersion,
    SystemSetting,
    TermsAcceptance,
)

COMPLETED_STATUSES = (RequestStatus.PLAYED, RequestStatus.SKIPPED)


# DJ user CRUD
async def get_dj_user_by_id(db: AsyncSession, dj_id: int) -> Optional[DJUser]:
    """Get DJ user by ID."""
    result = await db.execute(select(DJUser).where(DJUser.id == dj_id))
    return result.scalar_one_or_none()


async def get_dj_user_by_username(db: AsyncSession, username: str) -> Optional[DJUser]:
    """Get DJ user by username."""
    result = await db.execute(select(DJUser).where(DJUser.username == username))
    return result.scalar_one_or_none()


async def count_dj_users(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(DJUser.id)))
    return int(result.scalar_one())


async def create_dj_user(db: AsyncSession, username: str, password_hash: str) -> DJUser:
    """Create a new DJ user."""
    dj = DJUser(username=username, password_hash=password_hash)
    db.add(dj)
    await db.flush()
    return dj


# Song catalog CRUD
async def get_songs(db: AsyncSession) -> List[Song]:
    """Get all songs ordered by title."""
    result = await db.execute(select(Song).order_by(Song.title.asc(), Song.id.asc()))
    return list(result.scalars().all())


async def search_songs(db: AsyncSession, query: str) -> List[Song]:
    """Case-insensitive search over title, artist and genre."""
    pattern = f"%{query.lower()}%"
    result = await db.execute(
        select(Song)
        .where(
            or_(
                func.lower(Song.title).like(pattern),
                func.lower(Song.artist).like(pattern),
                func.lower(Song.genre).like(pattern),
            )
        )
        .order_by(Song.title.asc(), Song.id.asc())
    )
    return list(result.scalars().all())


async def get_song(db: AsyncSession, song_id: int) -> Optional[Song]:
    result = await db.execute(select(Song).where(Song.id == song_id))
    return result.scalar_one_or_none()


async def create_song(
    db: AsyncSession,
    title: str,
    artist: str,
    genre: Optional[str] = None,
    duration: Optional[str] = None,
    song_type: SongType = SongType.DJ,
) -> Song:
    """Create a new catalog song."""
    song = Song(
        title=title,
        artist=artist,
        genre=genre,
        duration=duration,
        song_type=song_type,
        request_count=0,
    )
    db.add(song)
    await db.flush()
    return song


async def update_song(db: AsyncSession, song_id: int, **fields) -> Optional[Song]:
    """Apply a partial update to a song. Unknown fields are ignored."""
    song = await get_song(db, song_id)
    if not song:
        return None
    for name in ("title", "artist", "genre", "duration", "song_type"):
        if name in fields:
            setattr(song, name, fields[name])
    await db.flush()
    return song


async def delete_song(db: AsyncSession, song_id: int) -> bool:
    """Delete a song, detaching any requests that reference it."""
    await db.execute(
        update(SongRequest).where(SongRequest.song_id == song_id).values(song_id=None)
    )
    result = await db.execute(delete(Song).where(Song.id == song_id))
    await db.flush()
    return result.rowcount > 0


async def increment_song_request_count(db: AsyncSession, song_id: int) -> None:
    await db.execute(
        update(Song)
        .where(Song.id == song_id)
        .values(request_count=Song.request_count + 1)
    )


# Request CRUD
async def get_requests(
    db: AsyncSession,
    request_type: Optional[RequestType] = None,
) -> List[SongRequest]:
    """Get requests in submission order with their catalog song loaded."""
    query = select(SongRequest).options(selectinload(SongRequest.song))
    if request_type:
        query = query.where(SongRequest.request_type == request_type)
    query = query.order_by(SongRequest.timestamp.asc(), SongRequest.id.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_request(db: AsyncSession, request_id: int) -> Optional[SongRequest]:
    result = await db.execute(
        select(SongRequest)
        .options(selectinload(SongRequest.song))
        .where(SongRequest.id == request_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_request(
    db: AsyncSession,
    song_title: str,
    song_artist: str,
    requester_name: str,
    song_id: Optional[int] = None,
    song_version: SongVersion = SongVersion.STANDARD,
    request_type: RequestType = RequestType.DJ,
    notes: Optional[str] = None,
    is_manual_request: bool = False,
    user_uuid: Optional[str] = None,
    device_fingerprint: Optional[str] = None,
) -> SongRequest:
    """Insert a new pending request."""
    request = SongRequest(
        song_id=song_id,
        song_title=song_title,
        song_artist=song_artist,
        song_version=song_version,
        request_type=request_type,
        requester_name=requester_name,
        notes=notes,
        status=RequestStatus.PENDING,
        is_manual_request=is_manual_request,
        user_uuid=user_uuid,
        device_fingerprint=device_fingerprint,
        timestamp=utcnow(),
    )
    db.add(request)
    await db.flush()
    return request


async def transition_request_status(
    db: AsyncSession,
    request_id: int,
    from_status: RequestStatus,
    to_status: RequestStatus,
) -> bool:
    """
    Move a request between statuses only if it is still in ``from_status``.

    Returns False when the row is gone or another writer changed it first.
    """
    result = await db.execute(
        update(SongRequest)
        .where(SongRequest.id == request_id, SongRequest.status == from_status)
        .values(status=to_status)
    )
    await db.flush()
    return result.rowcount > 0


async def delete_request(db: AsyncSession, request_id: int) -> bool:
    result = await db.execute(delete(SongRequest).where(SongRequest.id == request_id))
    await db.flush()
    return result.rowcount > 0


async def delete_requests_by_user(db: AsyncSession, user_uuid: str) -> int:
    """Delete every request submitted by a user id."""
    result = await db.execute(delete(SongRequest).where(SongRequest.user_uuid == user_uuid))
    await db.flush()
    return result.rowcount


async def clear_completed_requests(
    db: AsyncSession,
    request_type: Optional[RequestType] = None,
) -> int:
    """Delete played and skipped requests, optionally for one queue."""
    stmt = delete(SongRequest).where(SongRequest.status.in_(COMPLETED_STATUSES))
    if request_type:
        stmt = stmt.where(SongRequest.request_type == request_type)
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount


async def clear_all_requests(
    db: AsyncSession,
    request_type: Optional[RequestType] = None,
) -> int:
    stmt = delete(SongRequest)
    if request_type:
        stmt = stmt.where(SongRequest.request_type == request_type)
    result = await db.execute(stmt)
    await db.flush()
    return result.rowcount


async def count_requests_by_status(
    db: AsyncSession,
    request_type: Optional[RequestType] = None,
) -> Dict[str, int]:
    """Count requests per status plus manual requests in one query."""

    def _count_if(condition):
        return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

    query = select(
        func.count(SongRequest.id),
        _count_if(SongRequest.status == RequestStatus.PENDING),
        _count_if(SongRequest.status == RequestStatus.PLAYED),
        _count_if(SongRequest.status == RequestStatus.SKIPPED),
        _count_if(SongRequest.status == RequestStatus.REMOVED),
        _count_if(SongRequest.is_manual_request.is_(True)),
    )
    if request_type:
        query = query.where(SongRequest.request_type == request_type)

    total, pending, played, skipped, removed, manual = (await db.execute(query)).one()
    return {
        "total": int(total or 0),
        "pending": int(pending or 0),
        "played": int(played or 0),
        "skipped": int(skipped or 0),
        "removed": int(removed or 0),
        "manual": int(manual or 0),
    }


async def link_request_to_song(db: AsyncSession, request: SongRequest, song: Song) -> SongRequest:
    """Attach a catalog song to a manual request."""
    request.song_id = song.id
    request.song = song
    request.is_manual_request = False
    await db.flush()
    return request


# Ban CRUD
async def get_bans(db: AsyncSession) -> List[Ban]:
    """Get all bans, newest first."""
    result = await db.execute(
        select(Ban).order_by(Ban.ban_timestamp.desc(), Ban.id.desc())
    )
    return list(result.scalars().all())


async def get_bans_for_user(db: AsyncSession, user_uuid: str) -> List[Ban]:
    """Get every ban recorded for a user id, newest first."""
    result = await db.execute(
        select(Ban)
        .where(Ban.user_uuid == user_uuid)
        .order_by(Ban.ban_timestamp.desc(), Ban.id.desc())
    )
    return list(result.scalars().all())


async def create_ban(
    db: AsyncSession,
    user_uuid: str,
    ban_reason: str,
    device_fingerprint: Optional[str] = None,
    is_permanent: bool = True,
    expires_at: Optional[datetime] = None,
    ban_timestamp: Optional[datetime] = None,
) -> Ban:
    ban = Ban(
        user_uuid=user_uuid,
        device_fingerprint=device_fingerprint,
        ban_reason=ban_reason,
        ban_timestamp=ban_timestamp or utcnow(),
        is_permanent=is_permanent,
        expires_at=expires_at,
    )
    db.add(ban)
    await db.flush()
    return ban


async def delete_ban(db: AsyncSession, ban_id: int) -> bool:
    result = await db.execute(delete(Ban).where(Ban.id == ban_id))
    await db.flush()
    return result.rowcount > 0


# Terms acceptance CRUD
async def get_terms_acceptance(db: AsyncSession, user_uuid: str) -> Optional[TermsAcceptance]:
    result = await db.execute(
        select(TermsAcceptance).where(TermsAcceptance.user_uuid == user_uuid)
    )
    return result.scalar_one_or_none()


async def create_terms_acceptance(
    db: AsyncSession,
    user_uuid: str,
    device_fingerprint: Optional[str] = None,
) -> TermsAcceptance:
    acceptance = TermsAcceptance(
        user_uuid=user_uuid,
        device_fingerprint=device_fingerprint,
        accepted_at=utcnow(),
    )
    db.add(acceptance)
    await db.flush()
    return acceptance


async def clear_terms_acceptance(db: AsyncSession) -> int:
    result = await db.execute(delete(TermsAcceptance))
    await db.flush()
    return result.rowcount


async def count_terms_acceptance(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(TermsAcceptance.id)))
    return int(result.scalar_one())


# System settings CRUD
async def get_system_setting(db: AsyncSession, key: str) -> Optional[SystemSetting]:
    # upserts bypass the identity map, so always refresh from the row
    result = await db.execute(
        select(SystemSetting)
        .where(SystemSetting.key == key)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def upsert_system_setting(db: AsyncSession, key: str, value: str) -> None:
    """Insert or update a setting keyed by its unique key."""
    now = utcnow()
    dialect = db.bind.dialect.name if db.bind is not None else ""

    if dialect in ("sqlite", "postgresql"):
        if dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert as dialect_insert
        else:
            from sqlalchemy.dialects.postgresql import insert as dialect_insert
        stmt = dialect_insert(SystemSetting).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SystemSetting.key],
            set_={"value": value, "updated_at": now},
        )
        await db.execute(stmt)
    elif dialect == "mysql":
        from sqlalchemy.dialects.mysql import insert as mysql_insert
        stmt = mysql_insert(SystemSetting).values(key=key, value=value, updated_at=now)
        stmt = stmt.on_duplicate_key_update(value=value, updated_at=now)
        await db.execute(stmt)
    else:
        setting = await get_system_setting(db, key)
        if setting:
            setting.value = value
            setting.updated_at = now
        else:
            db.add(SystemSetting(key=key, value=value, updated_at=now))

    await db.flush()
