############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: Database package initialization and exports
#
############################################################

"""Database package for RequestBooth."""

from backend.app.db.base import Base
from backend.app.db.session import get_async_db, engine, AsyncSessionLocal

__all__ = ["Base", "get_async_db", "engine", "AsyncSessionLocal"]
