# services/readiness_service.py
"""
뷰어 렌더링 완료 대기 서비스.
정해진 간격으로 frame 상태를 조회하고, 기한이 지나면 있는 그대로 진행한다.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict

from playwright.async_api import Frame, Error as PlaywrightError

logger = logging.getLogger(__name__)

__all__ = ["ReadinessPolicy", "is_rendered", "wait_until_rendered"]

MIN_TEXT_LENGTH = 100

_RENDER_STATE_JS = """
() => {
  const images = Array.from(document.querySelectorAll('img'));
  return {
    imagesLoaded: images.every(img => img.complete && img.naturalHeight > 0),
    textLength: document.body ? document.body.innerText.length : 0,
  };
}
"""


class ReadinessPolicy(str, Enum):
    ALL = "all"   # 이미지 로딩 완료 AND 텍스트 존재
    ANY = "any"   # 둘 중 하나만 만족해도 완료


def is_rendered(
    state: Dict[str, Any],
    policy: ReadinessPolicy = ReadinessPolicy.ALL,
    min_text_length: int = MIN_TEXT_LENGTH,
) -> bool:
    images_loaded = bool(state.get("imagesLoaded"))
    has_text = int(state.get("textLength") or 0) > min_text_length
    if policy == ReadinessPolicy.ANY:
        return images_loaded or has_text
    return images_loaded and has_text


async def wait_until_rendered(
    frame: Frame,
    timeout: float = 20.0,
    interval: float = 0.5,
    policy: ReadinessPolicy = ReadinessPolicy.ALL,
    min_text_length: int = MIN_TEXT_LENGTH,
) -> bool:
    """
    frame 내용이 충분히 렌더링될 때까지 대기.

    Returns:
        기한 내 완료 여부. 시간 초과여도 예외를 던지지 않는다.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    while True:
        try:
            state = await frame.evaluate(_RENDER_STATE_JS)
            if is_rendered(state, policy, min_text_length):
                return True
        except PlaywrightError as e:
            # 렌더링 도중 frame 이 재탐색되면 평가가 실패할 수 있음
            logger.debug(f"Render state check failed: {e}")

        if loop.time() >= deadline:
            break
        await asyncio.sleep(interval)

    logger.warning(f"Content loading timeout after {timeout:.0f}s, proceeding anyway: {frame.url}")
    return False
