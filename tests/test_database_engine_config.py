def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    from resolutionai.database import database as db

    monkeypatch.delenv("DEBUG", raising=False)
    kwargs = db.get_engine_kwargs("sqlite:///./resolutionai.db")

    assert kwargs["connect_args"]["check_same_thread"] is False
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["echo"] is False


def test_get_engine_kwargs_other_database(monkeypatch):
    from resolutionai.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")

    assert "connect_args" not in kwargs
    assert kwargs["echo"] is True


def test_url_helpers():
    from resolutionai.database import database as db

    assert db._is_sqlite_url("sqlite:///./resolutionai.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False
    assert db._is_memory_url("sqlite:///:memory:") is True
    assert db._is_memory_url("sqlite:///./resolutionai.db") is False


def test_file_database_uses_wal(tmp_path):
    from sqlalchemy import text
    from resolutionai.database import database as db

    engine = db.build_engine(f"sqlite:///{tmp_path / 'tasks.db'}")
    try:
        with engine.connect() as conn:
            assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
    finally:
        engine.dispose()
