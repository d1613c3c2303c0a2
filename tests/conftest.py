from __future__ import annotations

import pytest

from fakes import FakeClock, FakeTransport


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport_factory(clock):
    def _make(*outcomes) -> FakeTransport:
        return FakeTransport(clock, outcomes)

    return _make
