"""Shared fixtures for zk unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from zk_support import T0, T1, FakeClock

from zk.config import ZkConfig
from zk.index import ZettelIndex


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(T0, T1)


@pytest.fixture()
def index(tmp_path: Path, clock: FakeClock) -> ZettelIndex:
    """Fresh, uncommitted YAML index rooted at ``tmp_path``."""
    return ZettelIndex.create(ZkConfig(root=tmp_path), clock=clock)
