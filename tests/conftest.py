"""
Shared fixtures for relayer tests.
"""

import pytest

from evvm_relayer.config import Settings
from evvm_relayer.fisher import Fisher

from fakes import TOKEN_ADDRESS, FakeEvmClient


@pytest.fixture
def fisher():
    return Fisher()


@pytest.fixture
def evm():
    return FakeEvmClient()


@pytest.fixture
def settings():
    return Settings(
        relayer_private_key="0x" + "11" * 32,
        token_addresses={"MATE": TOKEN_ADDRESS},
        poll_interval_seconds=0.01,
        confirmation_timeout_seconds=5,
    )
