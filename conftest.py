"""Root conftest.py — loads .env before any tests run."""
import pytest
from dotenv import load_dotenv

load_dotenv()


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the lru_cache on get_settings so monkeypatch.setenv takes effect."""
    from config.settings import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fresh_db(tmp_path):
    """Point persistence at an empty SQLite file under tmp_path."""
    from persistence.database import configure_database, init_db
    from persistence.models import Base
    import persistence.database as db_mod

    original_engine, original_session = db_mod.engine, db_mod.SessionLocal
    configure_database(str(tmp_path / "test.db"))
    init_db()

    yield db_mod.engine

    Base.metadata.drop_all(db_mod.engine)
    db_mod.engine.dispose()
    db_mod.engine, db_mod.SessionLocal = original_engine, original_session
