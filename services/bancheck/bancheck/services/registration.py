"""Server registration against server_info.

Used both by the heartbeat timer and by the `css_bancheck_register` console
command. Never raises (except on cancellation): a failed registration is logged
and retried on the next heartbeat.
"""

import asyncio
import logging

from bancheck.settings import BanCheckConfig, resolve_env
from bancheck.stores.ban_repository import BanRepository

logger = logging.getLogger("bancheck")


class ServerRegistrar:
    """Registers this server (or refreshes its heartbeat) in the store."""

    def __init__(self, repository: BanRepository, config: BanCheckConfig) -> None:
        self.repository = repository
        self.config = config

    def resolve_server_key(self) -> str:
        """Server key from the configured env var, else from the config file."""
        section = self.config.registration
        return resolve_env(section.server_key_env_var) or section.server_key.strip()

    async def register(self) -> bool:
        """Upsert this server's row.

        Returns:
            True if the row was written.
        """
        section = self.config.registration
        if not section.enabled:
            return False

        key = self.resolve_server_key()
        if not key:
            logger.warning(
                "[bancheck] Registration enabled, but no server key found. "
                f"Set env {section.server_key_env_var} or config Registration.ServerKey."
            )
            return False

        try:
            await self.repository.upsert_server(
                server_key=key,
                server_name=section.server_name,
                ip=section.server_ip,
                port=section.server_port,
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("[bancheck] Server registration/heartbeat failed.")
            return False

        logger.info(f"[bancheck] Server registered/heartbeat ok. key={key}")
        return True
