"""
Unit Test Fixtures
"""

import pytest

from steelcut.config import HostConfig

from fakes import FakeSession, FakeTransport


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fake_transport(fake_session: FakeSession) -> FakeTransport:
    return FakeTransport(fake_session)


@pytest.fixture
def remote_config(fake_transport: FakeTransport) -> HostConfig:
    """Config for a remote host that never touches the network."""
    return HostConfig(
        user="deploy",
        password="secret",
        sudo_password="sudopass",
        transport=fake_transport,
    )
