############################################################
#
# requestbooth - Live Event Song Request Service
#
# catalog.py: Song library lookups and DJ edits
#
############################################################

"""Song catalog."""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.errors import ValidationError
from backend.app.db import crud
from backend.app.db.models import Song, SongType
from backend.app.logging_config import get_logger

logger = get_logger(__name__)

_MAX_LENGTHS = {"title": 255, "artist": 255, "genre": 100, "duration": 16}


def _clean_text(name: str, value: Optional[str], required: bool) -> Optional[str]:
    text = (value or "").strip()
    if not text:
        if required:
            raise ValidationError(name, f"Song {name} is required")
        return None
    if len(text) > _MAX_LENGTHS[name]:
        raise ValidationError(name, f"Song {name} must be at most {_MAX_LENGTHS[name]} characters")
    return text


def _parse_song_type(value: Optional[str]) -> SongType:
    try:
        return SongType(value or SongType.DJ.value)
    except ValueError:
        raise ValidationError("songType", "Song type must be dj, karaoke or both")


class SongCatalog:
    """Thin service over the songs table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(self, search: Optional[str] = None) -> List[Song]:
        if search and search.strip():
            return await crud.search_songs(self.db, search.strip())
        return await crud.get_songs(self.db)

    async def get(self, song_id: int) -> Optional[Song]:
        return await crud.get_song(self.db, song_id)

    async def create(
        self,
        title: Optional[str],
        artist: Optional[str],
        genre: Optional[str] = None,
        duration: Optional[str] = None,
        song_type: Optional[str] = None,
    ) -> Song:
        song = await crud.create_song(
            self.db,
            title=_clean_text("title", title, required=True),
            artist=_clean_text("artist", artist, required=True),
            genre=_clean_text("genre", genre, required=False),
            duration=_clean_text("duration", duration, required=False),
            song_type=_parse_song_type(song_type),
        )
        await self.db.commit()
        logger.info("song_created", song_id=song.id, title=song.title)
        return song

    async def update(self, song_id: int, changes: Dict[str, Any]) -> Optional[Song]:
        """Partial update. Only keys present in ``changes`` are touched."""
        fields: Dict[str, Any] = {}
        for name in ("title", "artist"):
            if name in changes:
                fields[name] = _clean_text(name, changes[name], required=True)
        for name in ("genre", "duration"):
            if name in changes:
                fields[name] = _clean_text(name, changes[name], required=False)
        if "song_type" in changes:
            fields["song_type"] = _parse_song_type(changes["song_type"])

        song = await crud.update_song(self.db, song_id, **fields)
        if song is None:
            return None
        await self.db.commit()
        return song

    async def delete(self, song_id: int) -> bool:
        deleted = await crud.delete_song(self.db, song_id)
        await self.db.commit()
        if deleted:
            logger.info("song_deleted", song_id=song_id)
        return deleted
