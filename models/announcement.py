# models/announcement.py
"""지원사업 공고 및 추출 결과 관련 모델"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# 제한 없음을 뜻하는 기본값
UNRESTRICTED_COMPANY_AGE = "무관"
UNRESTRICTED_REGION = "전국"
UNRESTRICTED_AGE = "무관"
UNRESTRICTED_INDUSTRY = "전분야"
DEFAULT_SUPPORT_FIELD = "기타"


class Source(str, Enum):
    BIZINFO = "bizinfo"      # 기업마당: 본문 iframe 뷰어
    KSTARTUP = "k-startup"   # K-Startup: 첨부파일 '바로보기' 새 창 뷰어


class Announcement(BaseModel):
    """지원사업 공고 레코드 (source, source_id 로 유일)"""
    id: Optional[str] = None
    source: Source
    source_id: str
    title: str
    organization: Optional[str] = None
    region: Optional[str] = None
    category: Optional[str] = None
    url: str

    # 신청 기간 (application_end 가 없으면 상시 모집)
    application_start: Optional[datetime] = None
    application_end: Optional[datetime] = None

    # 원문 텍스트
    eligibility: Optional[str] = None
    description: Optional[str] = None

    # 매칭용 필드
    company_age: Optional[str] = None
    target_region: Optional[str] = None
    target_age: Optional[str] = None
    target_industry: Optional[str] = None
    support_field: Optional[str] = None

    # 사람용 서술 필드
    ai_summary: Optional[str] = None
    target_detail: Optional[str] = None
    exclusion_detail: Optional[str] = None

    llm_processed: bool = False


class ApplicationTarget(BaseModel):
    """LLM으로 추출한 매칭용 신청 자격 정보"""
    company_age: str = Field(UNRESTRICTED_COMPANY_AGE, description="업력 요건 (예: '7년 미만', '예비창업자', '무관')")
    target_region: str = Field(UNRESTRICTED_REGION, description="지역 제한 (예: '서울', '전국')")
    target_age: str = Field(UNRESTRICTED_AGE, description="대표자 연령 (예: '만 39세 이하', '무관')")
    target_industry: str = Field(UNRESTRICTED_INDUSTRY, description="대상 업종 (예: 'SW', '제조업', '전분야')")
    support_field: str = Field(DEFAULT_SUPPORT_FIELD, description="지원 유형 (예: '자금', '기술개발')")

    ai_summary: Optional[str] = None
    target_detail: Optional[str] = None
    exclusion_detail: Optional[str] = None


class NarrativeSummary(BaseModel):
    """사람이 읽기 위한 서술형 요약"""
    ai_summary: str = ""
    target_detail: str = ""
    exclusion_detail: str = ""


class UserProfile(BaseModel):
    """매칭 요청자 정보. 비어 있는 항목은 필터링하지 않는다."""
    founding_year: Optional[int] = None
    region: Optional[str] = None
    birth_month: Optional[str] = None  # "YYYY-MM"
    industry: Optional[str] = None
