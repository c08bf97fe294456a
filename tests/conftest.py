import pytest

from tests.fakes import FakeBackend, FakeSession


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def fake_session():
    return FakeSession()
