from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any, Optional


@dataclass
class CrawlResult:
    """소스 단위 크롤링 결과."""
    success: bool
    count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """API 응답용 딕셔너리 변환."""
        data: Dict[str, Any] = {"success": self.success, "count": self.count}
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class BatchCrawlResult:
    """배치 크롤링 전체 결과."""
    results: Dict[str, CrawlResult] = field(default_factory=dict)
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def success(self) -> bool:
        if self.error:
            return False
        return all(r.success for r in self.results.values())

    @property
    def total_count(self) -> int:
        return sum(r.count for r in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        """API 응답용 딕셔너리 변환."""
        data: Dict[str, Any] = {
            "success": self.success,
            "total_count": self.total_count,
            "results": {source: r.to_dict() for source, r in self.results.items()},
            "timestamp": self.timestamp.isoformat(),
        }
        if self.error:
            data["error"] = self.error
        return data
