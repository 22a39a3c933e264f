from __future__ import annotations

import pytest

from nsys_fakes import FakeNsys


@pytest.fixture
def fake_nsys() -> FakeNsys:
    return FakeNsys()
