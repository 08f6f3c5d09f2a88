from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

import rota.db as rota_db
from rota import models  # noqa: F401


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    db_file = tmp_path / "test_rota.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")

    # Rebind per test so every test gets its own writable SQLite file.
    rota_db.engine.dispose()
    rota_db.DATABASE_URL = rota_db.get_database_url()
    rota_db.engine = rota_db.build_engine(rota_db.DATABASE_URL)
    rota_db.SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=rota_db.engine,
        expire_on_commit=False,
    )

    rota_db.Base.metadata.drop_all(bind=rota_db.engine)
    rota_db.Base.metadata.create_all(bind=rota_db.engine)
    yield
    rota_db.Base.metadata.drop_all(bind=rota_db.engine)
    rota_db.engine.dispose()
