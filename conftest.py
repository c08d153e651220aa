import os

import pytest

from zkmail.config import get_config
from zkmail.header.buffer import HeaderBuffer
from zkmail.tests import make_header
from zkmail.verifiers import binding


def _clear_caches() -> None:
    get_config.cache_clear()
    binding._configured.cache_clear()


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Each test sees default configuration unless it sets ZKMAIL_* itself."""
    for key in list(os.environ):
        if key.startswith("ZKMAIL_") and key != "ZKMAIL_TEST_LOG":
            monkeypatch.delenv(key, raising=False)
    _clear_caches()
    yield
    _clear_caches()


@pytest.fixture
def header_bytes():
    return make_header()


@pytest.fixture
def header_buffer(header_bytes):
    return HeaderBuffer.from_bytes(header_bytes)


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: runs real BN254 pairings (seconds per test)")
