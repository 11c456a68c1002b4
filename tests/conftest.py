import pytest
from sqlalchemy import create_engine, text

import services.database_service as database_service

SCHEMA = """
CREATE TABLE support_program (
    id TEXT NOT NULL PRIMARY KEY,
    source TEXT NOT NULL,
    source_id TEXT NOT NULL,
    category TEXT,
    title TEXT NOT NULL,
    organization TEXT,
    region TEXT,
    url TEXT NOT NULL,
    application_start TIMESTAMP,
    application_end TIMESTAMP,
    eligibility TEXT,
    description TEXT,
    status TEXT NOT NULL DEFAULT 'active',
    company_age TEXT,
    target_region TEXT,
    target_age TEXT,
    target_industry TEXT,
    support_field TEXT,
    ai_summary TEXT,
    target_detail TEXT,
    exclusion_detail TEXT,
    llm_processed BOOLEAN NOT NULL DEFAULT 0,
    updated_at TIMESTAMP,
    UNIQUE (source, source_id)
)
"""


@pytest.fixture
def engine(tmp_path, monkeypatch):
    """SQLite 임시 DB 를 database_service 엔진으로 사용."""
    eng = create_engine(f"sqlite:///{tmp_path / 'programs.db'}")
    with eng.connect() as conn:
        conn.execute(text(SCHEMA))
        conn.commit()
    monkeypatch.setattr(database_service, "get_engine", lambda: eng)
    yield eng
    eng.dispose()


def insert_program(engine, **values):
    row = {
        "id": f"{values['source']}-{values['source_id']}",
        "title": "공고",
        "url": "https://example.com/view",
        "application_end": None,
        "llm_processed": False,
        "status": "active",
    }
    row.update(values)
    columns = ", ".join(row)
    params = ", ".join(f":{k}" for k in row)
    with engine.connect() as conn:
        conn.execute(text(f"INSERT INTO support_program ({columns}) VALUES ({params})"), row)
        conn.commit()
