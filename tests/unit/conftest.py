"""
Unit test fixtures.

All unit tests should be:
- Fast (< 100ms)
- Isolated (no database, no network)
- Deterministic (same result every time)
"""

from types import SimpleNamespace

import pytest


@pytest.fixture
def individual():
    """An individual user record without a username."""
    return SimpleNamespace(
        id="user-ada",
        user_type="individual",
        username=None,
        first_name="Ada",
        last_name="Lovelace",
        company_name=None,
    )


@pytest.fixture
def organization():
    """An organization user record."""
    return SimpleNamespace(
        id="user-atelier",
        user_type="organization",
        username=None,
        first_name=None,
        last_name=None,
        company_name="Atelier Nord",
    )
