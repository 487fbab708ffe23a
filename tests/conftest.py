import pytest

from linkrank.config import CONFIG
from linkrank.db import init_db


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "data" / "linkrank.db"
    monkeypatch.setattr(CONFIG, "db_path", str(path))
    init_db()
    return path
