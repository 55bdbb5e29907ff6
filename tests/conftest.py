from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.site_builder import FakeSphinx, SiteBuilder


@pytest.fixture
def site_builder(tmp_path: Path) -> SiteBuilder:
    """Provide a reusable site layout rooted at the pytest tmp_path."""
    return SiteBuilder(tmp_path)


@pytest.fixture
def fake_sphinx() -> FakeSphinx:
    """Provide a fragment compiler runner that never shells out."""
    return FakeSphinx()
