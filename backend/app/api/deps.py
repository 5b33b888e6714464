############################################################
#
# requestbooth - Live Event Song Request Service
#
# deps.py: FastAPI dependencies wiring core services per request
#
############################################################

"""Request-scoped service dependencies."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.access_gate import AccessGate
from backend.app.core.catalog import SongCatalog
from backend.app.db.session import get_async_db
from backend.app.settings import get_settings


async def get_access_gate(db: AsyncSession = Depends(get_async_db)) -> AccessGate:
    return AccessGate(db, settings=get_settings())


async def get_song_catalog(db: AsyncSession = Depends(get_async_db)) -> SongCatalog:
    return SongCatalog(db)
