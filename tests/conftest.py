import pytest

from .helpers import Harness


@pytest.fixture
def harness():
    return Harness()
