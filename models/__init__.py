# models package
from .requests import CrawlRequest, MatchRequest, MatchedProgram, MatchResponse

from .announcement import (
  Announcement, ApplicationTarget, NarrativeSummary, Source, UserProfile
)
from .metrics import CrawlResult, BatchCrawlResult

__all__ = [
    "CrawlRequest",
    "MatchRequest",
    "MatchedProgram",
    "MatchResponse",

    "Announcement",
    "ApplicationTarget",
    "NarrativeSummary",
    "Source",
    "UserProfile",
    "CrawlResult",
    "BatchCrawlResult",
]
