"""Shared fixtures for pipeline tests."""

import pytest

from bancheck.core.expiring_cache import ExpiringCache
from bancheck.core.inflight import InFlightGuard
from bancheck.host import FrameQueue
from bancheck.services.ban_pipeline import BanDecisionPipeline
from bancheck.settings import BanCheckConfig
from tests.fakes import FakeHost, FakeRepository, FakeSteam


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def steam() -> FakeSteam:
    return FakeSteam()


@pytest.fixture
def config() -> BanCheckConfig:
    return BanCheckConfig()


@pytest.fixture
def pipeline(host, repository, steam, config) -> BanDecisionPipeline:
    return BanDecisionPipeline(
        host=host,
        frame_queue=FrameQueue(),
        guard=InFlightGuard(),
        cache=ExpiringCache(60),
        repository=repository,
        steam=steam,
        config=config,
    )
