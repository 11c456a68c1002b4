"""
Persistence write-back tests against a temporary SQLite database.
"""
from sqlalchemy import text

from models.announcement import ApplicationTarget, Source
from services.database_service import (
    fetch_announcements_for_crawl,
    fetch_active_announcements,
    update_extraction,
)
from tests.conftest import insert_program


def _count(engine) -> int:
    with engine.connect() as conn:
        return conn.execute(text("SELECT COUNT(*) FROM support_program")).scalar_one()


def test_fetch_pending_skips_processed(engine):
    insert_program(engine, source="bizinfo", source_id="1")
    insert_program(engine, source="bizinfo", source_id="2", llm_processed=True)
    insert_program(engine, source="k-startup", source_id="3")

    rows = fetch_announcements_for_crawl(Source.BIZINFO, limit=10)

    assert [r.source_id for r in rows] == ["1"]
    assert rows[0].source == Source.BIZINFO


def test_fetch_target_id_ignores_processed_flag(engine):
    insert_program(engine, source="bizinfo", source_id="2", llm_processed=True)

    rows = fetch_announcements_for_crawl(Source.BIZINFO, limit=10, target_id="2")

    assert [r.source_id for r in rows] == ["2"]
    assert rows[0].llm_processed is True


def test_fetch_pending_respects_limit(engine):
    for i in range(4):
        insert_program(engine, source="k-startup", source_id=str(i))

    assert len(fetch_announcements_for_crawl(Source.KSTARTUP, limit=2)) == 2


def test_update_extraction_is_idempotent(engine):
    insert_program(engine, source="bizinfo", source_id="1")

    first = ApplicationTarget(company_age="7년 미만", target_region="서울", ai_summary="요약")
    second = ApplicationTarget(company_age="3년 이내", target_region="전국", target_industry="SW")

    assert update_extraction(Source.BIZINFO, "1", first) == 1
    assert update_extraction(Source.BIZINFO, "1", second) == 1

    assert _count(engine) == 1
    rows = fetch_announcements_for_crawl(Source.BIZINFO, limit=10, target_id="1")
    program = rows[0]
    assert program.llm_processed is True
    assert program.company_age == "3년 이내"
    assert program.target_region == "전국"
    assert program.target_industry == "SW"
    assert program.target_age == "무관"
    assert program.ai_summary is None


def test_update_unknown_announcement_touches_nothing(engine):
    assert update_extraction(Source.BIZINFO, "missing", ApplicationTarget()) == 0
    assert _count(engine) == 0


def test_fetch_active(engine):
    insert_program(engine, source="bizinfo", source_id="1", application_end="2026-12-31 00:00:00")
    insert_program(engine, source="bizinfo", source_id="2", status="closed")

    rows = fetch_active_announcements()

    assert [r.source_id for r in rows] == ["1"]
    assert rows[0].application_end.year == 2026
