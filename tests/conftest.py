"""
Root test configuration.

Test organization:
- unit/        Fast, isolated, no database, mocked collaborators
- integration/ Real SQLAlchemy sessions on in-memory SQLite, HTTP through the ASGI app

Run specific levels:
    pytest tests/unit -v
    pytest tests/integration -v
    pytest tests -v
"""

import os
import sys
from pathlib import Path

# Settings are read at import time; keep tests off the developer database
# and out of any real SMS account.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_FROM_NUMBER"] = ""

# Application modules live flat inside StyleGallery/
sys.path.insert(0, str(Path(__file__).parent.parent / "StyleGallery"))

import pytest


def pytest_collection_modifyitems(config, items):
    """Tag tests with the marker of the directory they live in."""
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        elif f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
