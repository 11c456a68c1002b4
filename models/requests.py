# models/requests.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from .announcement import Source


class CrawlRequest(BaseModel):
    source: Optional[Source] = None   # None 이면 전체 소스
    limit: Optional[int] = None
    target_id: Optional[str] = None   # 특정 공고 1건 재처리
    use_browser: bool = True


class MatchRequest(BaseModel):
    # 쿼리 파라미터는 camelCase (?foundingYear=2021&birthMonth=1990-05)
    founding_year: Optional[int] = Field(default=None, alias="foundingYear")
    region: Optional[str] = None
    birth_month: Optional[str] = Field(default=None, alias="birthMonth")  # YYYY-MM format
    industry: Optional[str] = None


class MatchedProgram(BaseModel):
    id: Optional[str] = None
    title: str
    organization: Optional[str] = None
    application_end: Optional[datetime] = None
    url: str
    company_age: Optional[str] = None
    target_region: Optional[str] = None
    target_age: Optional[str] = None
    target_industry: Optional[str] = None
    support_field: Optional[str] = None


class MatchResponse(BaseModel):
    success: bool = True
    data: List[MatchedProgram]
    total: int
