import asyncio
import logging
from typing import Optional, Sequence

from playwright.async_api import Page

from models.announcement import Source
from services.capture_service import CaptureProfile
from services.viewer.base import BaseViewerLocator, ViewerTarget

logger = logging.getLogger(__name__)

# 알려진 뷰어 백엔드의 frame URL 표식 (문서 뷰어 / 이미지 뷰어 / PDF 뷰어)
VIEWER_URL_MARKERS = ("dxviewer", "synap", "pdf")


class FrameScanLocator(BaseViewerLocator):
    """페이지에 붙은 frame 들의 URL 을 주기적으로 검사해 뷰어 frame 을 찾는다."""

    source = Source.BIZINFO
    wait_until = "networkidle"
    content_selector = ".view_cont"
    fallback_selectors = (".view_cont",)
    capture_profile = CaptureProfile(
        viewport_width=1920,
        chunk_height=3000,
        max_chunks=6,
        min_height=2000,
        max_height=20000,
        settle_seconds=2.0,
        jpeg_quality=100,
        viewport_margin=200,
    )

    def __init__(
        self,
        markers: Sequence[str] = VIEWER_URL_MARKERS,
        poll_interval: float = 0.5,
        timeout: float = 15.0,
    ):
        self.markers = tuple(markers)
        self.poll_interval = poll_interval
        self.timeout = timeout

    def is_viewer_url(self, url: str) -> bool:
        return any(marker in url for marker in self.markers)

    async def locate(self, page: Page) -> Optional[ViewerTarget]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        while True:
            for frame in page.frames:
                if self.is_viewer_url(frame.url):
                    logger.info(f"[{self.source.value}] Viewer frame found: {frame.url}")
                    return ViewerTarget(frame=frame)

            if loop.time() >= deadline:
                break
            await asyncio.sleep(self.poll_interval)

        logger.info(f"[{self.source.value}] No viewer frame within {self.timeout:.0f}s")
        return None
