import pytest
import sqlitelink


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.sqlite")


@pytest.fixture
def conn(db_path):
    c = sqlitelink.connect(db_path)
    yield c
    c.close()
