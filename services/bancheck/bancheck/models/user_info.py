"""User info model.

One row per SteamID64. The ban flag and role are owned by the admin side of
the site; this plugin only reads `banned` and refreshes profile columns.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from bancheck.stores.postgres import Base

NAME_MAX_LEN = 255
URL_MAX_LEN = 512


class UserInfo(Base):
    """Player profile + ban flag."""

    __tablename__ = "user_info"

    steamid64: Mapped[str] = mapped_column(String(64), primary_key=True)

    # Steam profile (refreshed from the Steam Web API)
    name: Mapped[str] = mapped_column(String(NAME_MAX_LEN))
    avatar: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    avatarmedium: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    avatarfull: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    profileurl: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))

    # Linked accounts (managed by the website)
    facebook: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    spotify: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    twitter: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    instagram: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    github: Mapped[str | None] = mapped_column(String(URL_MAX_LEN))
    google_id: Mapped[str | None] = mapped_column(String(255), index=True)
    discord_id: Mapped[str | None] = mapped_column(String(255), index=True)
    github_oauth_id: Mapped[str | None] = mapped_column(String(255), index=True)

    # Authorization (never written by the plugin)
    role: Mapped[str] = mapped_column(String(20), server_default=text("'user'"))
    banned: Mapped[bool] = mapped_column(Boolean, server_default=text("false"))

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<UserInfo {self.steamid64} banned={self.banned}>"
