import pytest

from resampler.sinks.memory_sink import MemorySink
from tests.helpers import DelayEngine


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture(autouse=True)
def reset_release_counter():
    DelayEngine.instances = 0
    DelayEngine.releases = 0
    yield
