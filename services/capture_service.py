# services/capture_service.py
"""
문서 뷰어 분할 캡처 서비스.

뷰어는 canvas/이미지 타일로 그려지기 때문에 한 장짜리 전체 스크린샷은
수천 px 이상에서 깨지기 쉽다. 전체 높이를 고정 높이 조각으로 나누어
위에서부터 순서대로 스크롤 → 대기 → 캡처한다.
"""
import asyncio
import base64
import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from playwright.async_api import Frame, Page, Error as PlaywrightError

logger = logging.getLogger(__name__)

__all__ = [
    "CaptureProfile",
    "CaptureError",
    "ChunkSlice",
    "clamp_height",
    "plan_chunks",
    "measure_content",
    "capture_frame_chunks",
    "capture_main_content",
]

MIN_TAIL_HEIGHT = 100
FALLBACK_JPEG_QUALITY = 80

# body 뿐 아니라 모든 하위 요소의 scrollHeight 중 최댓값 (중첩 스크롤 컨테이너 대응)
_CONTENT_SIZE_JS = """
() => {
  if (!document.body) return null;
  let maxH = document.body.scrollHeight;
  for (const el of Array.from(document.querySelectorAll('*'))) {
    if (el.scrollHeight > maxH) maxH = el.scrollHeight;
  }
  return { width: document.body.scrollWidth, height: maxH };
}
"""

_SCROLL_TO_JS = """
(y) => {
  window.scrollTo(0, y);
  return window.scrollY;
}
"""


class CaptureError(Exception):
    """캡처할 요소가 전혀 없음."""


@dataclass(frozen=True)
class CaptureProfile:
    """소스별 캡처 설정 (단위: px, 초)."""
    viewport_width: int
    chunk_height: int
    max_chunks: int
    min_height: int
    max_height: int
    settle_seconds: float
    jpeg_quality: int
    viewport_margin: int = 0
    min_tail: int = MIN_TAIL_HEIGHT


@dataclass(frozen=True)
class ChunkSlice:
    offset: int
    height: int


def clamp_height(height: int, profile: CaptureProfile) -> int:
    return min(max(height, profile.min_height), profile.max_height)


def plan_chunks(
    total_height: int,
    chunk_height: int,
    max_chunks: int,
    min_tail: int = MIN_TAIL_HEIGHT,
) -> List[ChunkSlice]:
    """
    0 부터 total_height 까지를 chunk_height 단위로 자른 캡처 구간 목록.
    max_chunks 에 도달하면 중단하고, 마지막 자투리가 min_tail 보다 작으면 버린다.
    """
    slices: List[ChunkSlice] = []
    offset = 0
    while offset < total_height and len(slices) < max_chunks:
        height = min(chunk_height, total_height - offset)
        if height < min_tail and slices:
            break
        slices.append(ChunkSlice(offset=offset, height=height))
        offset += height
    return slices


async def measure_content(frame: Frame) -> Tuple[int, int]:
    """frame 문서의 (너비, 실제 콘텐츠 높이)."""
    size = await frame.evaluate(_CONTENT_SIZE_JS)
    if not size:
        raise CaptureError(f"No capturable element in frame: {frame.url}")
    return int(size["width"]), int(size["height"])


async def _frame_origin(frame: Frame) -> Tuple[float, float]:
    """페이지 좌표계에서 frame 의 좌상단 위치. 최상위 frame 이면 (0, 0)."""
    if frame.parent_frame is None:
        return 0.0, 0.0
    element = await frame.frame_element()
    box = await element.bounding_box()
    if box is None:
        raise CaptureError(f"Viewer frame is not visible: {frame.url}")
    return box["x"], box["y"]


async def capture_frame_chunks(frame: Frame, profile: CaptureProfile) -> List[str]:
    """
    뷰어 frame 을 위에서부터 분할 캡처.

    Args:
        frame: 렌더링이 끝난 뷰어 frame
        profile: 소스별 캡처 설정

    Returns:
        오프셋 오름차순의 base64 JPEG 목록 (최대 profile.max_chunks 장)

    Raises:
        CaptureError: 캡처할 요소가 없음
    """
    page: Page = frame.page
    content_width, content_height = await measure_content(frame)
    total_height = clamp_height(content_height, profile)
    width = content_width or profile.viewport_width

    logger.info(f"Viewer size: {content_width}x{content_height} (capture height {total_height})")

    # 전체 문서가 레이아웃되도록 viewport 확장
    await page.set_viewport_size({
        "width": max(profile.viewport_width, width),
        "height": total_height + profile.viewport_margin,
    })

    slices = plan_chunks(total_height, profile.chunk_height, profile.max_chunks, profile.min_tail)
    if len(slices) == profile.max_chunks and slices[-1].offset + slices[-1].height < total_height:
        logger.warning(f"Max chunks ({profile.max_chunks}) reached, stopping capture")

    chunks: List[str] = []
    for chunk in slices:
        # 스크롤로 해당 위치 렌더링을 유도한 뒤 다시 그려질 때까지 대기
        scrolled = chunk.offset
        try:
            scrolled = int(await frame.evaluate(_SCROLL_TO_JS, chunk.offset))
        except PlaywrightError as e:
            logger.warning(f"Scroll to {chunk.offset} failed: {e}")
        await asyncio.sleep(profile.settle_seconds)

        origin_x, origin_y = await _frame_origin(frame)
        image = await page.screenshot(
            type="jpeg",
            quality=profile.jpeg_quality,
            clip={
                "x": origin_x,
                "y": origin_y + (chunk.offset - scrolled),
                "width": width,
                "height": chunk.height,
            },
        )
        chunks.append(base64.b64encode(image).decode())

    logger.info(f"Captured {len(chunks)} chunks")
    return chunks


async def capture_main_content(page: Page, selectors: Sequence[str], profile: CaptureProfile) -> List[str]:
    """
    뷰어를 찾지 못했을 때 본문 영역 한 장을 캡처.
    selectors 를 순서대로 시도하고, 모두 없으면 body 를 캡처한다.

    Raises:
        CaptureError: 본문/body 요소가 없음
    """
    element = None
    for selector in (*selectors, "body"):
        element = await page.query_selector(selector)
        if element is not None:
            logger.info(f"Fallback capture element: {selector}")
            break
    if element is None:
        raise CaptureError(f"No content element on page: {page.url}")

    try:
        body_height = await page.evaluate("() => document.body ? document.body.scrollHeight : 0")
        await page.set_viewport_size({
            "width": profile.viewport_width,
            "height": min(int(body_height) + 100, profile.max_height),
        })
    except PlaywrightError as e:
        logger.debug(f"Viewport resize for fallback failed: {e}")

    image = await element.screenshot(type="jpeg", quality=FALLBACK_JPEG_QUALITY)
    return [base64.b64encode(image).decode()]
