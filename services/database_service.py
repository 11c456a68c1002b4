# services/database_service.py
from typing import List, Optional
from sqlalchemy import text
from app.deps import get_engine
from models.announcement import Announcement, ApplicationTarget, Source


_ANNOUNCEMENT_COLUMNS = """
    id, source, source_id, title, organization, region, category, url,
    application_start, application_end, eligibility, description,
    company_age, target_region, target_age, target_industry, support_field,
    ai_summary, target_detail, exclusion_detail, llm_processed
"""


# ========== 추출 대상 조회 ==========

def fetch_announcements_for_crawl(
    source: Source,
    limit: int,
    target_id: Optional[str] = None,
    include_processed: bool = False,
) -> List[Announcement]:
    """
    소스별 추출 대상 공고 조회.
    target_id 가 있으면 처리 여부와 관계없이 해당 공고 1건만 반환.
    """
    engine = get_engine()
    with engine.connect() as conn:
        if target_id is not None:
            rows = conn.execute(text(f"""
                SELECT {_ANNOUNCEMENT_COLUMNS}
                FROM support_program
                WHERE source = :source AND source_id = :source_id
            """), {"source": source.value, "source_id": target_id}).mappings().all()
        else:
            rows = conn.execute(text(f"""
                SELECT {_ANNOUNCEMENT_COLUMNS}
                FROM support_program
                WHERE source = :source
                  AND (:include_processed OR llm_processed = :processed)
                ORDER BY application_end IS NULL, application_end
                LIMIT :limit
            """), {
                "source": source.value,
                "include_processed": include_processed,
                "processed": False,
                "limit": limit,
            }).mappings().all()
        return [Announcement(**row) for row in rows]


# ========== 추출 결과 반영 ==========

def update_extraction(source: Source, source_id: str, target: ApplicationTarget) -> int:
    """
    매칭용 5개 필드 + 서술형 3개 필드를 덮어쓰고 llm_processed 를 true 로 설정.
    같은 공고에 다시 실행해도 행이 늘어나지 않는다.
    반환: 갱신된 행 수
    """
    engine = get_engine()
    with engine.connect() as conn:
        result = conn.execute(text("""
            UPDATE support_program SET
                company_age = :company_age,
                target_region = :target_region,
                target_age = :target_age,
                target_industry = :target_industry,
                support_field = :support_field,
                ai_summary = :ai_summary,
                target_detail = :target_detail,
                exclusion_detail = :exclusion_detail,
                llm_processed = :llm_processed,
                updated_at = CURRENT_TIMESTAMP
            WHERE source = :source AND source_id = :source_id
        """), {
            "company_age": target.company_age,
            "target_region": target.target_region,
            "target_age": target.target_age,
            "target_industry": target.target_industry,
            "support_field": target.support_field,
            "ai_summary": target.ai_summary,
            "target_detail": target.target_detail,
            "exclusion_detail": target.exclusion_detail,
            "llm_processed": True,
            "source": source.value,
            "source_id": source_id,
        })
        conn.commit()
        return result.rowcount


# ========== 매칭 후보 조회 ==========

def fetch_active_announcements() -> List[Announcement]:
    """게시 중인 공고 전체 (마감 필터링은 매칭 서비스에서)."""
    engine = get_engine()
    with engine.connect() as conn:
        rows = conn.execute(text(f"""
            SELECT {_ANNOUNCEMENT_COLUMNS}
            FROM support_program
            WHERE status = 'active'
        """)).mappings().all()
        return [Announcement(**row) for row in rows]
