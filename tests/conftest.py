import pytest

from fakes import FakeOpener


@pytest.fixture
def opener() -> FakeOpener:
    return FakeOpener()
