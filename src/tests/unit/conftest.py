"""Shared fixtures."""

import pytest

from tests.unit.fakes import FakeRemote


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()
