############################################################
#
# requestbooth - Live Event Song Request Service
#
# system_status.py: Global operating switches and derived status
#
############################################################

"""System status store.

Two switches live in the key/value settings table: ``requests_enabled``
and ``maintenance_mode``. The karaoke flag is deployment configuration
and is never stored.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import crud
from backend.app.db.models import MAINTENANCE_MODE_KEY, REQUESTS_ENABLED_KEY


@dataclass(frozen=True)
class SystemStatus:
    """Snapshot of the global switches."""

    requests_enabled: bool = True
    maintenance_mode: bool = False
    karaoke_enabled: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return {
            "requestsEnabled": self.requests_enabled,
            "maintenanceMode": self.maintenance_mode,
            "karaokeEnabled": self.karaoke_enabled,
        }


class SettingsBackend(Protocol):
    """Key/value storage for system settings."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...


class DatabaseSettingsBackend:
    """Settings stored in the ``system_settings`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, key: str) -> Optional[str]:
        setting = await crud.get_system_setting(self.db, key)
        return setting.value if setting else None

    async def set(self, key: str, value: str) -> None:
        await crud.upsert_system_setting(self.db, key, value)
        await self.db.commit()


class InMemorySettingsBackend:
    """Process-local settings, used by tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value


class SystemStatusStore:
    """Reads and writes the global switches over a settings backend."""

    def __init__(self, backend: SettingsBackend, karaoke_enabled: bool = False):
        self.backend = backend
        self.karaoke_enabled = karaoke_enabled

    async def get(self, key: str) -> Optional[str]:
        return await self.backend.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.backend.set(key, value)

    async def get_status(self) -> SystemStatus:
        """
        Derive the status from stored strings.

        Requests stay enabled unless the stored value is exactly "false";
        maintenance is off unless it is exactly "true". Missing keys take
        the default.
        """
        requests_enabled = await self.backend.get(REQUESTS_ENABLED_KEY)
        maintenance_mode = await self.backend.get(MAINTENANCE_MODE_KEY)
        return SystemStatus(
            requests_enabled=requests_enabled != "false",
            maintenance_mode=maintenance_mode == "true",
            karaoke_enabled=self.karaoke_enabled,
        )
