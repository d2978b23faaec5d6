import io

import pytest

from ilowhisper.pipeline import Discovery
from ilowhisper.reporter import DedupReporter


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def discovery(out):
    return Discovery(reporter=DedupReporter(stream=out))
