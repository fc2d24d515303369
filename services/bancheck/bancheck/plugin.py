"""BanCheck plugin entry point.

Kick banned users based on user_info.banned; optionally registers the server
in server_info and keeps its heartbeat fresh.

The host adapter wires these methods to its own event system:
- on_client_put_in_server / on_client_disconnect: player listeners
- on_game_frame: called once per game frame on the game thread
- commands(): console commands by name
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from bancheck.core.expiring_cache import ExpiringCache
from bancheck.core.inflight import InFlightGuard
from bancheck.host import FrameQueue, HostRuntime, PlayerHandle
from bancheck.services.ban_pipeline import BanDecisionPipeline
from bancheck.services.heartbeat import HeartbeatScheduler
from bancheck.services.registration import ServerRegistrar
from bancheck.services.steam_client import SteamWebApiClient
from bancheck.settings import (
    BanCheckConfig,
    load_or_create_config,
    resolve_connection_string,
    save_config,
)
from bancheck.stores.ban_repository import BanRepository
from bancheck.stores.postgres import Database
from bancheck.worker import BackgroundLoop

logger = logging.getLogger("bancheck")

MODULE_NAME = "BanCheckPlugin"
MODULE_VERSION = "1.0.0"

CONSOLE_ONLY_MESSAGE = "[bancheck] Run this from server console."


@dataclass(frozen=True)
class ConsoleCommand:
    description: str
    handler: Callable[[PlayerHandle | None, list[str]], None]


def default_config_path(module_directory: Path) -> Path:
    """<root>/configs/plugins/BanCheckPlugin/BanCheckPlugin.json, two levels above the module."""
    root = (module_directory / ".." / "..").resolve()
    return root / "configs" / "plugins" / MODULE_NAME / f"{MODULE_NAME}.json"


class BanCheckPlugin:
    """Owns every long-lived object for one load/unload cycle."""

    def __init__(self, host: HostRuntime, config_path: Path) -> None:
        self.host = host
        self.config_path = config_path
        self.config = BanCheckConfig()

        self.worker = BackgroundLoop()
        self.frame_queue = FrameQueue()
        self.guard = InFlightGuard()

        self.cache: ExpiringCache[str, bool] | None = None
        self.db: Database | None = None
        self.repository: BanRepository | None = None
        self.steam: SteamWebApiClient | None = None
        self.pipeline: BanDecisionPipeline | None = None
        self.registrar: ServerRegistrar | None = None
        self.heartbeat: HeartbeatScheduler | None = None

    # ============================================================
    # Lifecycle
    # ============================================================

    def load(self, hot_reload: bool = False) -> None:
        self.config = load_or_create_config(self.config_path)

        self.cache = ExpiringCache(self.config.cache_ttl_seconds)
        self.db = Database(resolve_connection_string(self.config))
        self.db.init()
        self.repository = BanRepository(self.db)
        self.steam = SteamWebApiClient(timeout=self.config.steam_timeout_seconds)

        self.pipeline = BanDecisionPipeline(
            host=self.host,
            frame_queue=self.frame_queue,
            guard=self.guard,
            cache=self.cache,
            repository=self.repository,
            steam=self.steam,
            config=self.config,
        )
        self.registrar = ServerRegistrar(self.repository, self.config)
        self.heartbeat = HeartbeatScheduler(
            self.registrar.register, self.config.heartbeat_interval_seconds
        )

        self.worker.start()
        self.worker.spawn(self._startup())

        logger.info(f"[bancheck] Loaded. Config: {self.config_path}")

    def unload(self, hot_reload: bool = False) -> None:
        self.worker.stop(cleanup=self._close_resources)

        self.frame_queue.clear()
        self.guard.clear()
        if self.cache is not None:
            self.cache.clear()

        self.cache = None
        self.db = None
        self.repository = None
        self.steam = None
        self.pipeline = None
        self.registrar = None
        self.heartbeat = None

        logger.info("[bancheck] Unloaded.")

    async def _startup(self) -> None:
        if self.config.registration.auto_create_tables and self.repository is not None:
            try:
                await self.repository.ensure_tables()
                logger.info("[bancheck] Ensured tables (AutoCreateTables=true).")
            except Exception:
                logger.exception("[bancheck] Failed to ensure tables.")

        if self.config.registration.enabled and self.heartbeat is not None:
            await self.heartbeat.start()

    async def _close_resources(self) -> None:
        if self.heartbeat is not None:
            await self.heartbeat.stop()
        if self.steam is not None:
            await self.steam.close()
        if self.db is not None:
            await self.db.close()

    # ============================================================
    # Host events (game thread)
    # ============================================================

    def on_client_put_in_server(self, slot: int) -> None:
        if self.pipeline is None:
            return
        session = self.pipeline.admit(slot)
        if session is None:
            return

        try:
            future = self.worker.spawn(self.pipeline.run(session))
        except Exception:
            self.guard.release(slot, session.ticket)
            logger.exception(f"[bancheck] Failed to start ban check for slot {slot}")
            return

        # A task cancelled before its first step never reaches run()'s finally
        future.add_done_callback(lambda _: self.guard.release(slot, session.ticket))

    def on_client_disconnect(self, slot: int) -> None:
        self.guard.release(slot)

    def on_game_frame(self) -> None:
        self.frame_queue.drain()

    # ============================================================
    # Console commands (game thread)
    # ============================================================

    def commands(self) -> dict[str, ConsoleCommand]:
        return {
            "css_bancheck_reload": ConsoleCommand(
                "Reload BanCheckPlugin config", self.cmd_reload
            ),
            "css_bancheck_register": ConsoleCommand(
                "Register server key into DB: css_bancheck_register <server_key>",
                self.cmd_register,
            ),
        }

    def cmd_reload(self, caller: PlayerHandle | None, args: list[str]) -> None:
        if caller is not None:
            caller.print_to_chat(CONSOLE_ONLY_MESSAGE)
            return

        self.config = load_or_create_config(self.config_path)
        logger.info("[bancheck] Config reloaded.")

        # Rebuild cache and heartbeat with the new TTL / interval
        self.cache = ExpiringCache(self.config.cache_ttl_seconds)
        if self.pipeline is not None:
            self.pipeline.config = self.config
            self.pipeline.cache = self.cache
        if self.registrar is not None:
            self.registrar.config = self.config
            self.worker.spawn(self._rebuild_heartbeat())

    async def _rebuild_heartbeat(self) -> None:
        if self.registrar is None:
            return
        previous = self.heartbeat
        self.heartbeat = HeartbeatScheduler(
            self.registrar.register, self.config.heartbeat_interval_seconds
        )
        if previous is not None:
            await previous.stop()
        if self.config.registration.enabled:
            self.heartbeat.arm()

    def cmd_register(self, caller: PlayerHandle | None, args: list[str]) -> None:
        if caller is not None:
            caller.print_to_chat(CONSOLE_ONLY_MESSAGE)
            return

        if not args:
            logger.info("[bancheck] Usage: css_bancheck_register <server_key>")
            return

        server_key = args[0].strip()
        if not server_key:
            return

        self.config.registration.server_key = server_key
        save_config(self.config_path, self.config)

        if self.registrar is not None:
            self.worker.spawn(self.registrar.register())

        logger.info("[bancheck] Saved server key and triggered registration.")
