# services/matching_service.py
"""
사용자 조건 ↔ 공고 자격 요건 매칭 서비스.

자유 형식의 조건 문자열(예: "7년 미만", "만 19세~39세", "수도권")을
사용자 입력값과 비교해 통과 여부를 판단한다.
모든 규칙은 같은 순서를 따른다:
  1. 제한 없음 표현이면 통과
  2. 알려진 패턴이면 숫자/범주 비교
  3. 해석할 수 없으면 통과 (제외보다는 과포함)
"""
import re
from datetime import datetime
from typing import Iterable, List, Optional

from models.announcement import Announcement, UserProfile

__all__ = [
    "match_company_age",
    "match_region",
    "match_age",
    "match_industry",
    "company_age_years",
    "representative_age",
    "select_open_candidates",
    "filter_announcements",
]

UNRESTRICTED_MARKERS = ("무관", "제한없음", "제한 없음")
REGION_UNRESTRICTED_MARKERS = ("전국", "무관")
INDUSTRY_UNRESTRICTED_MARKERS = ("전분야", "전업종", "무관", "일반")

CAPITAL_AREA = ("서울", "경기", "인천")

INDUSTRY_KEYWORDS = {
    "SW": ["sw", "it", "소프트웨어", "정보통신", "ict", "디지털"],
    "제조": ["제조", "생산", "공장"],
    "바이오": ["바이오", "헬스", "의료", "제약", "건강"],
    "콘텐츠": ["콘텐츠", "미디어", "엔터", "방송", "영상"],
    "유통": ["유통", "물류", "배송", "커머스"],
    "관광": ["관광", "여행", "숙박", "서비스"],
    "에너지": ["에너지", "환경", "그린", "친환경", "신재생"],
    "농업": ["농업", "식품", "농식품", "푸드"],
}

_COMPANY_AGE_PATTERN = re.compile(r"(\d+)\s*년\s*(미만|이내|이하)")
_AGE_UNDER_PATTERN = re.compile(r"만?\s*(\d+)\s*세\s*(이하|미만)")
_AGE_RANGE_PATTERN = re.compile(r"만?\s*(\d+)\s*세?\s*[~\-]\s*(\d+)\s*세")
_AGE_OVER_PATTERN = re.compile(r"만?\s*(\d+)\s*세\s*이상")


def _is_unrestricted(condition: str, markers: Iterable[str]) -> bool:
    normalized = condition.lower()
    return any(marker in normalized for marker in markers)


# ========== 조건별 매칭 ==========

def match_company_age(condition: str, years: int) -> bool:
    """업력 조건 매칭. 예: "7년 미만", "3년 이내", "예비창업자"."""
    if _is_unrestricted(condition, UNRESTRICTED_MARKERS):
        return True

    # 예비창업자 = 업력 0년
    if "예비" in condition and years == 0:
        return True

    m = _COMPANY_AGE_PATTERN.search(condition)
    if m:
        limit = int(m.group(1))
        if m.group(2) == "미만":
            return years < limit
        return years <= limit

    return True


def match_region(condition: str, user_region: str) -> bool:
    """지역 조건 매칭. 예: "서울", "전국", "수도권"."""
    if _is_unrestricted(condition, REGION_UNRESTRICTED_MARKERS):
        return True

    if "수도권" in condition:
        return user_region in CAPITAL_AREA

    return user_region in condition


def match_age(condition: str, age: int) -> bool:
    """대표자 연령 조건 매칭. 예: "만 39세 이하", "만 19세~39세", "만 20세 이상"."""
    if _is_unrestricted(condition, UNRESTRICTED_MARKERS):
        return True

    m = _AGE_UNDER_PATTERN.search(condition)
    if m:
        limit = int(m.group(1))
        if m.group(2) == "미만":
            return age < limit
        return age <= limit

    m = _AGE_RANGE_PATTERN.search(condition)
    if m:
        low, high = int(m.group(1)), int(m.group(2))
        return low <= age <= high

    m = _AGE_OVER_PATTERN.search(condition)
    if m:
        return age >= int(m.group(1))

    return True


def match_industry(condition: str, user_industry: str) -> bool:
    """업종 조건 매칭. 사용자 업종을 유사 키워드로 확장해 포함 여부를 본다."""
    if _is_unrestricted(condition, INDUSTRY_UNRESTRICTED_MARKERS):
        return True

    normalized = condition.lower()
    keywords = INDUSTRY_KEYWORDS.get(user_industry, [user_industry.lower()])
    return any(keyword in normalized for keyword in keywords)


# ========== 사용자 정보 변환 ==========

def company_age_years(founding_year: int, now: datetime) -> int:
    """설립연도 → 업력(년)."""
    return now.year - founding_year


def representative_age(birth_month: str, now: datetime) -> Optional[int]:
    """
    생년월("YYYY-MM") → 만 나이.
    생일 달이 아직 지나지 않았으면 1살 적게 계산. 형식이 잘못되면 None.
    """
    try:
        year_str, month_str = birth_month.split("-")[:2]
        birth_year, birth_month_num = int(year_str), int(month_str)
    except ValueError:
        return None

    age = now.year - birth_year
    if now.month < birth_month_num:
        age -= 1
    return age


# ========== 후보 선정 및 필터링 ==========

def _local_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def select_open_candidates(announcements: Iterable[Announcement], now: datetime) -> List[Announcement]:
    """
    마감되지 않은 공고만 남기고 마감 임박 순으로 정렬.
    마감일이 없는 상시 공고는 항상 포함되며 맨 뒤에 온다.
    """
    now = _local_naive(now)
    open_items = [
        a for a in announcements
        if a.application_end is None or _local_naive(a.application_end) >= now
    ]
    return sorted(
        open_items,
        key=lambda a: (a.application_end is None, _local_naive(a.application_end) or now),
    )


def _matches_profile(
    announcement: Announcement,
    profile: UserProfile,
    years: Optional[int],
    age: Optional[int],
) -> bool:
    if years is not None and announcement.company_age:
        if not match_company_age(announcement.company_age, years):
            return False

    if profile.region and announcement.target_region:
        if not match_region(announcement.target_region, profile.region):
            return False

    if age is not None and announcement.target_age:
        if not match_age(announcement.target_age, age):
            return False

    if profile.industry and announcement.target_industry:
        if not match_industry(announcement.target_industry, profile.industry):
            return False

    return True


def filter_announcements(
    announcements: Iterable[Announcement],
    profile: UserProfile,
    now: Optional[datetime] = None,
) -> List[Announcement]:
    """마감 필터 → 사용자 조건(AND) 필터. 입력하지 않은 항목은 검사하지 않는다."""
    now = now or datetime.now()

    years = company_age_years(profile.founding_year, now) if profile.founding_year is not None else None
    age = representative_age(profile.birth_month, now) if profile.birth_month else None

    candidates = select_open_candidates(announcements, now)
    return [a for a in candidates if _matches_profile(a, profile, years, age)]
