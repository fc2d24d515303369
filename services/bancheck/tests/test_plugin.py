"""Tests for plugin lifecycle, host events and console commands."""

import json
import logging
import threading
import time

import pytest

from bancheck.core.expiring_cache import ExpiringCache
from bancheck.plugin import CONSOLE_ONLY_MESSAGE, BanCheckPlugin, default_config_path
from bancheck.services.ban_pipeline import BanDecisionPipeline
from bancheck.settings import save_config
from tests.fakes import FakeHost, FakePlayer, FakeRepository, FakeSteam


class FakeRegistrar:
    def __init__(self) -> None:
        self.registered = threading.Event()

    async def register(self) -> bool:
        self.registered.set()
        return True


@pytest.fixture
def plugin(tmp_path, monkeypatch):
    monkeypatch.delenv("SERVER_KEY", raising=False)
    host = FakeHost()
    plugin = BanCheckPlugin(host, tmp_path / "BanCheckPlugin.json")
    yield plugin
    plugin.worker.stop()


def _with_fake_pipeline(plugin: BanCheckPlugin, repository: FakeRepository) -> None:
    plugin.cache = ExpiringCache(60)
    plugin.pipeline = BanDecisionPipeline(
        host=plugin.host,
        frame_queue=plugin.frame_queue,
        guard=plugin.guard,
        cache=plugin.cache,
        repository=repository,
        steam=FakeSteam(),
        config=plugin.config,
    )


def test_default_config_path(tmp_path):
    module_dir = tmp_path / "addons" / "counterstrikesharp" / "plugins" / "BanCheckPlugin"

    path = default_config_path(module_dir)

    assert path == (
        tmp_path / "addons" / "counterstrikesharp" / "configs" / "plugins"
        / "BanCheckPlugin" / "BanCheckPlugin.json"
    ).resolve()


@pytest.mark.parametrize("command", ["css_bancheck_reload", "css_bancheck_register"])
def test_commands_reject_in_game_callers(plugin, command):
    caller = FakePlayer()

    plugin.commands()[command].handler(caller, ["eu-1"])

    assert caller.chat == [CONSOLE_ONLY_MESSAGE]
    assert not plugin.config_path.exists()


def test_register_persists_key_and_triggers_registration(plugin):
    registrar = FakeRegistrar()
    plugin.registrar = registrar
    plugin.worker.start()

    plugin.cmd_register(None, ["  eu-1  "])

    assert registrar.registered.wait(timeout=2)
    data = json.loads(plugin.config_path.read_text())
    assert data["Registration"]["ServerKey"] == "eu-1"
    assert plugin.config.registration.server_key == "eu-1"


def test_register_without_argument_does_nothing(plugin):
    plugin.cmd_register(None, [])
    plugin.cmd_register(None, ["   "])

    assert not plugin.config_path.exists()


def test_reload_rebuilds_cache_with_new_ttl(plugin):
    _with_fake_pipeline(plugin, FakeRepository())
    plugin.cache.set("123", True)
    save_config(plugin.config_path, plugin.config.model_copy(deep=True))
    data = json.loads(plugin.config_path.read_text())
    data["BanCheck"]["CacheSeconds"] = 5
    plugin.config_path.write_text(json.dumps(data))

    plugin.cmd_reload(None, [])

    assert plugin.cache.ttl_seconds == 5
    assert plugin.pipeline.cache is plugin.cache
    assert plugin.pipeline.config is plugin.config
    assert plugin.cache.get("123") == (None, False)


def test_join_runs_pipeline_and_kick_lands_on_game_frame(plugin):
    repository = FakeRepository()
    _with_fake_pipeline(plugin, repository)
    plugin.cache.set("123", True)
    plugin.host.players[2] = FakePlayer(steam_id64="123", user_id=17)
    plugin.worker.start()

    plugin.on_client_put_in_server(2)

    # Wait for the worker to finish and release the slot
    for _ in range(200):
        if 2 not in plugin.guard:
            break
        time.sleep(0.01)
    assert 2 not in plugin.guard

    assert plugin.host.commands == []
    plugin.on_game_frame()
    assert plugin.host.commands == ['kickid 17 "You are banned from this server."']
    assert repository.calls == []


def test_bot_join_is_ignored(plugin):
    _with_fake_pipeline(plugin, FakeRepository())
    plugin.host.players[3] = FakePlayer(is_bot=True)

    plugin.on_client_put_in_server(3)

    assert 3 not in plugin.guard


def test_join_with_stopped_worker_releases_slot(plugin, caplog):
    """If the check cannot be scheduled the slot is freed and the host never sees the error."""
    _with_fake_pipeline(plugin, FakeRepository())
    plugin.host.players[2] = FakePlayer()

    with caplog.at_level(logging.ERROR, logger="bancheck"):
        plugin.on_client_put_in_server(2)

    assert 2 not in plugin.guard
    assert "Failed to start ban check for slot 2" in caplog.text


def test_check_cancelled_before_it_starts_releases_slot(plugin):
    """Cancelling a queued check frees its slot without waiting for unload."""
    _with_fake_pipeline(plugin, FakeRepository())
    plugin.host.players[2] = FakePlayer()
    plugin.worker.start()

    futures = []
    spawn = plugin.worker.spawn

    def recording_spawn(coro):
        future = spawn(coro)
        futures.append(future)
        return future

    plugin.worker.spawn = recording_spawn

    # Hold the loop so the check is queued but not started
    entered = threading.Event()
    gate = threading.Event()

    async def block_loop():
        entered.set()
        gate.wait(timeout=5)

    spawn(block_loop())
    assert entered.wait(timeout=2)

    try:
        plugin.on_client_put_in_server(2)
        assert 2 in plugin.guard

        futures[0].cancel()

        assert 2 not in plugin.guard
        assert plugin.pipeline.cache.get("76561198000000001") == (None, False)
    finally:
        gate.set()


def test_disconnect_releases_slot(plugin):
    plugin.guard.try_admit(4)

    plugin.on_client_disconnect(4)
    plugin.on_client_disconnect(4)

    assert 4 not in plugin.guard


def test_load_and_unload_without_database(plugin):
    config = plugin.config.model_copy(deep=True)
    config.registration.enabled = False
    config.steam.use_steam_web_api = False
    save_config(plugin.config_path, config)

    plugin.load()
    assert plugin.worker.is_running
    assert plugin.pipeline is not None
    assert plugin.heartbeat is not None

    plugin.unload()
    assert not plugin.worker.is_running
    assert plugin.pipeline is None
    assert plugin.cache is None
