############################################################
#
# requestbooth - Live Event Song Request Service
#
# songs_api.py: Song catalog endpoints
#
############################################################

"""Song catalog endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from backend.app.api.auth import require_dj
from backend.app.api.deps import get_song_catalog
from backend.app.api.schemas import CamelModel, SongResponse
from backend.app.core.catalog import SongCatalog
from backend.app.core.errors import NotFound
from backend.app.security.sessions import DJSession

router = APIRouter()


class SongCreateRequest(CamelModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    genre: Optional[str] = None
    duration: Optional[str] = None
    song_type: Optional[str] = None


class SongUpdateRequest(SongCreateRequest):
    """Only the fields present in the body are applied."""


@router.get("", response_model=List[SongResponse])
async def list_songs(
    search: Optional[str] = Query(default=None),
    catalog: SongCatalog = Depends(get_song_catalog),
):
    """Catalog ordered by title, optionally filtered."""
    return await catalog.list(search)


@router.get("/{song_id}", response_model=SongResponse)
async def get_song(song_id: int, catalog: SongCatalog = Depends(get_song_catalog)):
    song = await catalog.get(song_id)
    if song is None:
        raise NotFound("Song not found")
    return song


@router.post("", response_model=SongResponse, status_code=status.HTTP_201_CREATED)
async def create_song(
    body: SongCreateRequest,
    catalog: SongCatalog = Depends(get_song_catalog),
    _dj: DJSession = Depends(require_dj),
):
    return await catalog.create(
        body.title,
        body.artist,
        genre=body.genre,
        duration=body.duration,
        song_type=body.song_type,
    )


@router.put("/{song_id}", response_model=SongResponse)
async def update_song(
    song_id: int,
    body: SongUpdateRequest,
    catalog: SongCatalog = Depends(get_song_catalog),
    _dj: DJSession = Depends(require_dj),
):
    """Partial update; omitted fields keep their values."""
    song = await catalog.update(song_id, body.model_dump(exclude_unset=True))
    if song is None:
        raise NotFound("Song not found")
    return song


@router.delete("/{song_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_song(
    song_id: int,
    catalog: SongCatalog = Depends(get_song_catalog),
    _dj: DJSession = Depends(require_dj),
) -> Response:
    if not await catalog.delete(song_id):
        raise NotFound("Song not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
