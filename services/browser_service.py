# services/browser_service.py
"""배치 단위로 공유하는 헤드리스 브라우저 세션."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import async_playwright, Browser

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@asynccontextmanager
async def browser_session(headless: bool = True) -> AsyncIterator[Browser]:
    """
    Chromium 을 한 번 띄워 배치 전체에서 공유하고, 성공/실패와 관계없이 반드시 닫는다.
    실행 자체가 실패하면 예외가 그대로 전파된다.
    """
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=headless,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        logger.info("Browser launched")
        try:
            yield browser
        finally:
            await browser.close()
            logger.info("Browser closed")
