import logging
from datetime import datetime

from fastapi import Depends, FastAPI
from crawl import run_crawl
from models import CrawlRequest, MatchRequest, MatchResponse, MatchedProgram, UserProfile
from services.database_service import fetch_active_announcements
from services.matching_service import filter_announcements

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI()


@app.post("/crawl")
async def crawl_announcements(request: CrawlRequest):
    """공고 뷰어 캡처 → LLM 자격 요건 추출 배치"""
    sources = [request.source] if request.source else None
    result = await run_crawl(
        sources=sources,
        limit=request.limit,
        target_id=request.target_id,
        use_browser=request.use_browser,
    )
    return result.to_dict()


@app.get("/match")
async def match_programs(request: MatchRequest = Depends()):
    """사용자 조건에 맞는 지원사업 매칭 API"""
    try:
        profile = UserProfile(**request.model_dump())
        announcements = fetch_active_announcements()
        matched = filter_announcements(announcements, profile, now=datetime.now())
        logger.info(f"Matched {len(matched)}/{len(announcements)} programs for {profile}")

        return MatchResponse(
            data=[MatchedProgram(**a.model_dump(include=set(MatchedProgram.model_fields))) for a in matched],
            total=len(matched),
        )
    except Exception as e:
        logger.error(f"[match] Error: {e}")
        return {"error": str(e), "success": False}
