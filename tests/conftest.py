import matplotlib

matplotlib.use("Agg")

import pytest

from database import create_database
from models import PersonRecord


def person(id, parent_id=None, spouse_id=None, name=None, **extra):
    """Shorthand record factory; ids double as names unless given."""
    values = {
        "name": name or f"Person {id}",
        "date_of_birth": "1950-01-01",
        "gender": "other",
        "owner_id": "alice",
    }
    values.update(extra)
    return PersonRecord(id=str(id), parent_id=parent_id, spouse_id=spouse_id, **values)


@pytest.fixture
def conn(tmp_path):
    conn = create_database(tmp_path / "family_tree.db")
    yield conn
    conn.close()
