"""Server info model.

Game servers register themselves by key and refresh `last_heartbeat`
periodically so the website can list which servers are alive.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bancheck.stores.postgres import Base

SERVER_NAME_MAX_LEN = 255
IP_MAX_LEN = 64


class ServerInfo(Base):
    """Registered game server."""

    __tablename__ = "server_info"

    server_key: Mapped[str] = mapped_column(String(128), primary_key=True)
    server_name: Mapped[str] = mapped_column(String(SERVER_NAME_MAX_LEN))
    ip: Mapped[str | None] = mapped_column(String(IP_MAX_LEN))
    port: Mapped[int | None] = mapped_column(Integer)

    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    last_heartbeat: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<ServerInfo {self.server_key} ({self.server_name})>"
