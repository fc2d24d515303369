"""Repository for the ban check tables.

Four operations back the plugin:
- lookup_ban: read banned + last_updated for a SteamID64
- upsert_profile: write Steam profile columns (never role/banned)
- insert_if_missing: minimal row for a first-time player
- upsert_server: register a server / refresh its heartbeat

Upserts use PostgreSQL INSERT ... ON CONFLICT so concurrent joins for
different players never need an application-level lock.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert

from bancheck.models import ServerInfo, UserInfo
from bancheck.models.server_info import IP_MAX_LEN, SERVER_NAME_MAX_LEN
from bancheck.models.user_info import NAME_MAX_LEN, URL_MAX_LEN
from bancheck.services.steam_client import PlayerSummary
from bancheck.stores.postgres import Database

FALLBACK_NAME = "Unknown"


@dataclass(frozen=True)
class BanStatus:
    """Result of a ban lookup."""

    found: bool
    banned: bool = False
    last_updated: datetime | None = None


def _truncate(value: str | None, max_len: int) -> str | None:
    if not value:
        return value
    return value[:max_len]


class BanRepository:
    """Data access for user_info and server_info."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def ensure_tables(self) -> None:
        """CREATE TABLE IF NOT EXISTS for both tables."""
        await self._db.create_tables([UserInfo.__table__, ServerInfo.__table__])

    async def lookup_ban(self, steam_id64: str) -> BanStatus:
        async with self._db.session() as session:
            result = await session.execute(
                select(UserInfo.banned, UserInfo.last_updated)
                .where(UserInfo.steamid64 == steam_id64)
                .limit(1)
            )
            row = result.first()

        if row is None:
            return BanStatus(found=False)
        return BanStatus(found=True, banned=bool(row.banned), last_updated=row.last_updated)

    async def upsert_profile(self, summary: PlayerSummary) -> None:
        """Insert or refresh Steam profile columns.

        role and banned are deliberately absent from the UPDATE set so a profile
        refresh can never unban (or promote) anyone.
        """
        stmt = insert(UserInfo).values(
            steamid64=summary.steam_id,
            name=_truncate(summary.persona_name or FALLBACK_NAME, NAME_MAX_LEN),
            avatar=_truncate(summary.avatar, URL_MAX_LEN),
            avatarmedium=_truncate(summary.avatar_medium, URL_MAX_LEN),
            avatarfull=_truncate(summary.avatar_full, URL_MAX_LEN),
            profileurl=_truncate(summary.profile_url, URL_MAX_LEN),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserInfo.steamid64],
            set_={
                "name": stmt.excluded.name,
                "avatar": stmt.excluded.avatar,
                "avatarmedium": stmt.excluded.avatarmedium,
                "avatarfull": stmt.excluded.avatarfull,
                "profileurl": stmt.excluded.profileurl,
                "last_updated": func.now(),
            },
        )
        async with self._db.session() as session:
            await session.execute(stmt)

    async def insert_if_missing(self, steam_id64: str, name_fallback: str) -> None:
        """Insert a minimal row; an existing row (and its name) is left untouched."""
        name = name_fallback if name_fallback and name_fallback.strip() else FALLBACK_NAME
        stmt = (
            insert(UserInfo)
            .values(steamid64=steam_id64, name=_truncate(name, NAME_MAX_LEN))
            .on_conflict_do_nothing(index_elements=[UserInfo.steamid64])
        )
        async with self._db.session() as session:
            await session.execute(stmt)

    async def upsert_server(
        self,
        server_key: str,
        server_name: str,
        ip: str | None,
        port: int | None,
    ) -> None:
        """Register a server or refresh its heartbeat."""
        stmt = insert(ServerInfo).values(
            server_key=server_key,
            server_name=_truncate(server_name, SERVER_NAME_MAX_LEN),
            ip=_truncate(ip, IP_MAX_LEN),
            port=port,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ServerInfo.server_key],
            set_={
                "server_name": stmt.excluded.server_name,
                "ip": stmt.excluded.ip,
                "port": stmt.excluded.port,
                "last_heartbeat": func.now(),
            },
        )
        async with self._db.session() as session:
            await session.execute(stmt)
