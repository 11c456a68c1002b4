import asyncio
import logging
from typing import Optional, Sequence

from playwright.async_api import ElementHandle, Page, Error as PlaywrightError

from models.announcement import Source
from services.capture_service import CaptureProfile
from services.viewer.base import BaseViewerLocator, ViewerTarget

logger = logging.getLogger(__name__)

# 공고문 첨부파일을 우선 선택하기 위한 키워드
ATTACHMENT_KEYWORDS = ("공고", "모집", "안내")


class NewTargetLocator(BaseViewerLocator):
    """첨부파일 '바로보기' 버튼을 눌러 새 창으로 열리는 뷰어를 찾는다."""

    source = Source.KSTARTUP
    wait_until = "domcontentloaded"
    content_selector = ".board_file"
    # 첨부파일 목록(.board_file)이 아닌 공고 본문 컨테이너
    fallback_selectors = (".information_list-wrap", ".board_view", "#contents")
    capture_profile = CaptureProfile(
        viewport_width=1280,
        chunk_height=1500,
        max_chunks=5,
        min_height=1500,
        max_height=10000,
        settle_seconds=1.0,
        jpeg_quality=60,
        viewport_margin=0,
    )

    item_selector = ".board_file ul li"
    button_selector = ".btn_view"

    def __init__(
        self,
        keywords: Sequence[str] = ATTACHMENT_KEYWORDS,
        popup_timeout: float = 30.0,
        stabilize_seconds: float = 4.0,
    ):
        self.keywords = list(keywords)
        self.popup_timeout = popup_timeout
        self.stabilize_seconds = stabilize_seconds

    async def pick_view_button(self, page: Page) -> Optional[ElementHandle]:
        """키워드가 들어간 첨부파일을 우선, 없으면 첫 번째 파일의 '바로보기' 버튼."""
        items = await page.query_selector_all(self.item_selector)
        if not items:
            return None

        target = items[0]
        for item in items:
            text = await item.text_content() or ""
            if any(keyword in text for keyword in self.keywords):
                target = item
                break
        return await target.query_selector(self.button_selector)

    async def locate(self, page: Page) -> Optional[ViewerTarget]:
        if await page.query_selector(self.content_selector) is None:
            logger.warning(f"[{self.source.value}] Attachment list not found: {page.url}")
            return None

        button = await self.pick_view_button(page)
        if button is None:
            logger.info(f"[{self.source.value}] No viewer button: {page.url}")
            return None

        try:
            # 현재 페이지가 opener 인 새 창만 대기
            async with page.expect_popup(timeout=self.popup_timeout * 1000) as popup_info:
                await button.click()
            viewer_page = await popup_info.value
        except PlaywrightError as e:
            logger.warning(f"[{self.source.value}] Viewer window did not open: {type(e).__name__}: {e}")
            return None

        try:
            await viewer_page.wait_for_selector("body", timeout=self.popup_timeout * 1000)
        except PlaywrightError as e:
            logger.warning(f"[{self.source.value}] Viewer body not ready: {type(e).__name__}")
            await viewer_page.close()
            return None

        await asyncio.sleep(self.stabilize_seconds)
        logger.info(f"[{self.source.value}] Viewer opened: {viewer_page.url}")
        return ViewerTarget(frame=viewer_page.main_frame, owned_page=viewer_page)
