import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from playwright.async_api import Frame, Page, Error as PlaywrightError

from models.announcement import Source
from services.capture_service import CaptureProfile

logger = logging.getLogger(__name__)


@dataclass
class ViewerTarget:
    """찾아낸 문서 뷰어. owned_page 는 뷰어가 새 창으로 열린 경우 닫아야 할 페이지."""
    frame: Frame
    owned_page: Optional[Page] = None

    async def close(self) -> None:
        if self.owned_page is not None and not self.owned_page.is_closed():
            await self.owned_page.close()


class BaseViewerLocator(ABC):
    source: Source
    capture_profile: CaptureProfile

    # 상세 페이지 이동 설정
    wait_until: str = "networkidle"
    content_selector: str = "body"
    # 뷰어를 못 찾았을 때 캡처할 본문 영역 (앞에서부터 시도, 없으면 body)
    fallback_selectors: Tuple[str, ...] = ()
    content_timeout: float = 10.0

    async def prepare(self, page: Page) -> None:
        """상세 페이지 이동 직후 본문 영역이 나타날 때까지 대기 (없어도 진행)."""
        try:
            await page.wait_for_selector(self.content_selector, timeout=self.content_timeout * 1000)
        except PlaywrightError as e:
            logger.warning(f"[{self.source.value}] {self.content_selector} not found: {type(e).__name__}")

    @abstractmethod
    async def locate(self, page: Page) -> Optional[ViewerTarget]:
        """
        페이지에서 공고문 뷰어를 찾는다.

        Args:
            page: 이동이 완료된 상세 페이지

        Returns:
            ViewerTarget 또는 None (찾지 못함 - 오류가 아니라 대체 캡처 경로로 진행)
        """
        pass
