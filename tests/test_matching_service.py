"""
Unit tests for eligibility condition matching.
"""
from datetime import datetime, timedelta

import pytest

from models.announcement import Announcement, Source, UserProfile
from models.requests import MatchRequest
from services.matching_service import (
    match_company_age,
    match_region,
    match_age,
    match_industry,
    company_age_years,
    representative_age,
    select_open_candidates,
    filter_announcements,
)

NOW = datetime(2026, 10, 19, 12, 0, 0)


def _announcement(source_id: str, end=None, **fields) -> Announcement:
    return Announcement(
        source=Source.BIZINFO,
        source_id=source_id,
        title=f"공고 {source_id}",
        url=f"https://example.com/{source_id}",
        application_end=end,
        **fields,
    )


class TestCompanyAge:

    @pytest.mark.parametrize("condition", ["무관", "업력 제한없음", "제한 없음"])
    @pytest.mark.parametrize("years", [0, 3, 50])
    def test_unrestricted_always_passes(self, condition, years):
        assert match_company_age(condition, years) is True

    def test_under_is_exclusive(self):
        assert match_company_age("7년 미만", 6) is True
        assert match_company_age("7년 미만", 7) is False

    def test_within_is_inclusive(self):
        assert match_company_age("7년 이내", 7) is True
        assert match_company_age("3년 이하", 4) is False

    def test_pre_founding_passes_at_zero_years(self):
        assert match_company_age("예비창업자", 0) is True

    def test_unparseable_passes(self):
        assert match_company_age("중소기업", 30) is True


class TestRegion:

    def test_nationwide(self):
        assert match_region("전국", "부산") is True
        assert match_region("지역 무관", "제주") is True

    def test_capital_area(self):
        assert match_region("수도권", "서울") is True
        assert match_region("수도권", "인천") is True
        assert match_region("수도권", "부산") is False

    def test_literal_region(self):
        assert match_region("서울, 경기", "경기") is True
        assert match_region("대구", "광주") is False


class TestAge:

    def test_at_most(self):
        assert match_age("만 39세 이하", 39) is True
        assert match_age("만 39세 이하", 40) is False

    def test_under_is_exclusive(self):
        assert match_age("만 40세 미만", 40) is False

    def test_range_inclusive(self):
        assert match_age("만 19세~39세", 19) is True
        assert match_age("만 19세~39세", 39) is True
        assert match_age("만 19세~39세", 40) is False

    def test_at_least(self):
        assert match_age("만 20세 이상", 20) is True
        assert match_age("만 20세 이상", 19) is False

    def test_unrestricted_and_unparseable(self):
        assert match_age("무관", 80) is True
        assert match_age("청년", 80) is True


class TestIndustry:

    def test_synonym_expansion(self):
        assert match_industry("SW, IT 기업 대상", "SW") is True
        assert match_industry("정보통신업", "SW") is True

    def test_unrestricted(self):
        assert match_industry("전분야(일반)", "바이오") is True

    def test_no_synonym_match(self):
        assert match_industry("제조업", "SW") is False

    def test_unknown_industry_literal(self):
        assert match_industry("패션 디자인", "패션") is True


class TestProfileDerivation:

    def test_company_age_years(self):
        assert company_age_years(2022, NOW) == 4

    def test_birthday_month_not_reached(self):
        assert representative_age("1990-11", NOW) == 35
        assert representative_age("1990-10", NOW) == 36

    def test_malformed_birth_month(self):
        assert representative_age("1990", NOW) is None


class TestFiltering:

    def test_expired_excluded_and_rolling_included(self):
        expired = _announcement("old", end=NOW - timedelta(days=1))
        rolling = _announcement("rolling", end=None)
        soon = _announcement("soon", end=NOW + timedelta(days=2))
        later = _announcement("later", end=NOW + timedelta(days=20))

        result = select_open_candidates([later, rolling, expired, soon], NOW)

        assert [a.source_id for a in result] == ["soon", "later", "rolling"]

    def test_expired_excluded_regardless_of_fields(self):
        expired = _announcement(
            "old", end=NOW - timedelta(days=1),
            company_age="무관", target_region="전국", target_age="무관", target_industry="전분야",
        )
        assert filter_announcements([expired], UserProfile(), now=NOW) == []

    def test_all_rules_combined_with_and(self):
        ok = _announcement("ok", company_age="7년 미만", target_region="수도권", target_age="만 39세 이하", target_industry="SW")
        too_old = _announcement("too-old", company_age="3년 미만", target_region="전국")
        wrong_region = _announcement("region", target_region="부산")

        profile = UserProfile(founding_year=2022, region="서울", birth_month="1995-03", industry="SW")
        result = filter_announcements([ok, too_old, wrong_region], profile, now=NOW)

        assert [a.source_id for a in result] == ["ok"]

    def test_missing_profile_fields_are_not_evaluated(self):
        strict = _announcement("strict", company_age="1년 미만", target_region="제주", target_age="만 20세 미만")
        assert filter_announcements([strict], UserProfile(industry="SW"), now=NOW) == [strict]

    def test_empty_condition_is_not_evaluated(self):
        blank = _announcement("blank", company_age="", target_region=None)
        profile = UserProfile(founding_year=1990, region="부산")
        assert filter_announcements([blank], profile, now=NOW) == [blank]


class TestMatchRequest:

    def test_camel_case_query_params(self):
        request = MatchRequest.model_validate({"foundingYear": 2021, "birthMonth": "1990-05", "region": "서울"})

        profile = UserProfile(**request.model_dump())

        assert profile.founding_year == 2021
        assert profile.birth_month == "1990-05"
        assert profile.region == "서울"
