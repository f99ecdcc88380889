"""Root conftest for test suite."""

import pytest

from app.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached; reload them around every test so env patches apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
