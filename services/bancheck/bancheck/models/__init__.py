"""SQLAlchemy ORM models.

Models represent database tables:
- user_info: Player profiles with the ban flag
- server_info: Registered game servers and their heartbeat
"""

from bancheck.models.server_info import ServerInfo
from bancheck.models.user_info import UserInfo

__all__ = ["ServerInfo", "UserInfo"]
