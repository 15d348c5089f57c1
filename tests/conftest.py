"""Shared test fixtures for modes-decode.

Provides:
- Config isolation (config file redirected to tmp_path)
- Resolver / decoder instances with an injected track map
- Reference location fixtures
"""

import pytest

from modes_decode.decoder import Decoder
from modes_decode.tracker import PositionResolver


# Amsterdam area — near the published CPR test vector position
REFERENCE_LAT = 52.0
REFERENCE_LON = 4.0


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the real ~/.modes-decode/config.yaml."""
    monkeypatch.setattr("modes_decode.config.CONFIG_DIR", tmp_path / "cfg")
    monkeypatch.setattr("modes_decode.config.CONFIG_FILE", tmp_path / "cfg" / "config.yaml")


@pytest.fixture
def tracks():
    """Caller-owned track map."""
    return {}


@pytest.fixture
def resolver(tracks):
    return PositionResolver(tracks=tracks)


@pytest.fixture
def decoder(resolver):
    return Decoder(resolver)


@pytest.fixture
def reference_location():
    return (REFERENCE_LAT, REFERENCE_LON)
