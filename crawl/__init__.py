# crawl package
"""
지원사업 공고 자격 요건 추출 패키지

- crawl: 뷰어 탐색 → 렌더링 대기 → 분할 캡처 → LLM 구조화 추출 → 결과 반영
"""

from .crawl import process_announcement, crawl_source, run_crawl

__all__ = [
    "process_announcement",
    "crawl_source",
    "run_crawl",
]
