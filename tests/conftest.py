"""
Shared test fixtures.

The database location is pinned to a throwaway SQLite file before the
application package is imported, so the module-level engine never touches
a developer's local data.
"""

import os
import tempfile
from pathlib import Path

_TMP_DIR = tempfile.mkdtemp(prefix="enrollment-dashboard-tests-")
os.environ.pop("DATABASE_URL", None)
os.environ["DB_PATH"] = str(Path(_TMP_DIR) / "test.sqlite")

import pytest  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

from enrollment_dashboard.services.enrollment_records import EnrollmentRecord  # noqa: E402
from enrollment_dashboard.services.recruiters import Recruiter  # noqa: E402


def rec(id, **kwargs):
    """Shorthand for an EnrollmentRecord."""
    return EnrollmentRecord(id=id, **kwargs)


def directory(*codes, names=None):
    """A configured-recruiter directory with the given codes."""
    names = names or {}
    return [Recruiter(code=c, name=names.get(c, f"Recruiter {c}"), url=f"https://example.test/?source={c}") for c in codes]


@pytest.fixture
def client():
    from fastapi.testclient import TestClient

    from enrollment_dashboard.database import engine, init_db
    from enrollment_dashboard.main import app

    init_db()
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)

    with TestClient(app) as c:
        yield c
