"""Join-time ban check.

Flow per player (one run per slot at a time, enforced by InFlightGuard):
1. Game thread: admit the slot, skip bots / HLTV / players without a SteamID64
2. Worker loop: check the in-memory ban cache
3. On a miss, read user_info; cache the flag
4. Banned -> kick; not banned -> maybe refresh the Steam profile if stale
5. Unknown player -> optional minimal insert + Steam profile, cached as not banned
6. Release the slot, whatever happened

Kicks never run on the worker loop. They are posted to the FrameQueue and run on
the game thread, after checking that the same player is still in the slot.

Failure policy:
- Cancellation (plugin unload): no kick, no log
- Any other error: logged; FailOpen=True lets the player in, FailOpen=False kicks
- Cache hits never trigger a profile refresh, store hits can
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

from bancheck.core.expiring_cache import ExpiringCache
from bancheck.core.inflight import InFlightGuard
from bancheck.core.refresh_policy import should_refresh
from bancheck.host import FrameQueue, HostRuntime
from bancheck.settings import BanCheckConfig, resolve_env
from bancheck.services.steam_client import SteamWebApiClient
from bancheck.stores.ban_repository import FALLBACK_NAME, BanRepository

logger = logging.getLogger("bancheck")

KICK_REASON_MAX_LEN = 120
DEFAULT_KICK_REASON = "Banned"
UNAVAILABLE_KICK_REASON = "Ban check unavailable. Please try again later."


class BanDecision(str, Enum):
    """Outcome of one ban check."""

    ALLOW = "allow"
    KICK = "kick"


@dataclass(frozen=True)
class PlayerSession:
    """A player admitted for a ban check."""

    slot: int
    steam_id64: str
    name: str
    ticket: int | None = None


def format_kick_reason(reason: str | None) -> str:
    """Make a kick reason safe to embed in a quoted console argument.

    Double quotes become single quotes, surrounding whitespace is stripped and
    the result is capped at 120 characters.
    """
    safe = (reason or DEFAULT_KICK_REASON).replace('"', "'").strip()
    return safe[:KICK_REASON_MAX_LEN]


class BanDecisionPipeline:
    """Decides, per joining player, whether to let them in."""

    def __init__(
        self,
        *,
        host: HostRuntime,
        frame_queue: FrameQueue,
        guard: InFlightGuard,
        cache: ExpiringCache[str, bool],
        repository: BanRepository,
        steam: SteamWebApiClient,
        config: BanCheckConfig,
    ) -> None:
        self.host = host
        self.frame_queue = frame_queue
        self.guard = guard
        self.cache = cache
        self.repository = repository
        self.steam = steam
        self.config = config

    # ============================================================
    # Game thread
    # ============================================================

    def admit(self, slot: int) -> PlayerSession | None:
        """Claim the slot and check the player is worth a lookup.

        Returns:
            The session to check, or None if the slot is already being checked
            or the player is not eligible (the slot is released in that case).
        """
        ticket = self.guard.acquire(slot)
        if ticket is None:
            return None

        session = None
        try:
            session = self._session_for(slot, ticket)
        except Exception:
            logger.exception(f"[bancheck] Failed to read player in slot {slot}")
        finally:
            if session is None:
                self.guard.release(slot, ticket)
        return session

    def _session_for(self, slot: int, ticket: int) -> PlayerSession | None:
        player = self.host.get_player_from_slot(slot)
        if player is None or not player.is_valid or player.is_bot or player.is_hltv:
            return None

        steam_id64 = (player.steam_id64 or "").strip()
        if not steam_id64:
            return None

        return PlayerSession(
            slot=slot,
            steam_id64=steam_id64,
            name=player.name or FALLBACK_NAME,
            ticket=ticket,
        )

    def kick_on_main_thread(self, session: PlayerSession, reason: str | None) -> None:
        """Queue a kick for the game thread."""
        safe_reason = format_kick_reason(reason)
        self.frame_queue.post(lambda: self._kick_if_still_connected(session, safe_reason))

    def _kick_if_still_connected(self, session: PlayerSession, reason: str) -> None:
        player = self.host.get_player_from_slot(session.slot)
        if player is None or not player.is_valid or player.is_bot or player.is_hltv:
            return
        # Slot reused by someone else since the check started
        if (player.steam_id64 or "").strip() != session.steam_id64:
            return
        user_id = player.user_id
        if user_id is None:
            return

        logger.info(f"[bancheck] Kicking {session.steam_id64} (slot {session.slot}): {reason}")
        self.host.execute_command(f'kickid {user_id} "{reason}"')

    # ============================================================
    # Worker loop
    # ============================================================

    async def run(self, session: PlayerSession) -> BanDecision:
        """Check one admitted player and act on the result.

        The slot is released on every exit path.
        """
        try:
            return await self._decide(session)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"[bancheck] Error checking ban status for {session.steam_id64}")
            if not self.config.ban_check.fail_open:
                self.kick_on_main_thread(session, UNAVAILABLE_KICK_REASON)
                return BanDecision.KICK
            return BanDecision.ALLOW
        finally:
            self.guard.release(session.slot, session.ticket)

    async def _decide(self, session: PlayerSession) -> BanDecision:
        steam_id64 = session.steam_id64
        cache = self.cache

        cached_banned, hit = cache.get(steam_id64)
        if hit:
            if cached_banned:
                self.kick_on_main_thread(session, self.config.ban_check.kick_reason)
                return BanDecision.KICK
            return BanDecision.ALLOW

        status = await self.repository.lookup_ban(steam_id64)

        if status.found:
            cache.set(steam_id64, status.banned)

            if status.banned:
                self.kick_on_main_thread(session, self.config.ban_check.kick_reason)
                return BanDecision.KICK

            steam_cfg = self.config.steam
            window = timedelta(minutes=steam_cfg.refresh_minutes)
            if steam_cfg.use_steam_web_api and should_refresh(status.last_updated, window):
                await self._refresh_profile(steam_id64)
            return BanDecision.ALLOW

        if self.config.ban_check.insert_if_missing:
            await self.repository.insert_if_missing(steam_id64, session.name)

        if self.config.steam.use_steam_web_api:
            await self._refresh_profile(steam_id64)

        # New users are not banned by default
        cache.set(steam_id64, False)
        return BanDecision.ALLOW

    async def _refresh_profile(self, steam_id64: str) -> None:
        """Fetch the Steam profile and store it under the looked-up SteamID64."""
        env_var = self.config.steam.api_key_env_var
        api_key = resolve_env(env_var)
        if not api_key:
            logger.warning(
                f"[bancheck] Steam API key env var '{env_var}' is missing; skipping Steam profile fetch."
            )
            return

        summary = await self.steam.get_player_summary(api_key, steam_id64)
        if summary is None:
            return

        # Steam echoes the id back; never trust it over the one we asked for
        summary.steam_id = steam_id64
        await self.repository.upsert_profile(summary)
