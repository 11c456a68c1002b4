# crawl/crawl.py
"""
공고 자격 요건 추출 모듈
상세 페이지 → 뷰어 캡처 이미지 → Vision LLM → 매칭용 필드
"""
import asyncio
import logging
from contextlib import nullcontext
from typing import Iterable, List, Optional

from playwright.async_api import Browser, Error as PlaywrightError

from app.deps import get_vision_llm
from app.settings import get_settings, Settings
from models.announcement import Announcement, ApplicationTarget, Source
from models.metrics import CrawlResult, BatchCrawlResult
from services.browser_service import browser_session
from services.capture_service import CaptureError, capture_frame_chunks, capture_main_content
from services.database_service import fetch_announcements_for_crawl, update_extraction
from services.extraction_service import StructuredExtractor
from services.readiness_service import wait_until_rendered
from services.viewer import BaseViewerLocator, get_viewer_locator

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPE = "image/jpeg"


async def capture_announcement(
    browser: Browser,
    announcement: Announcement,
    locator: BaseViewerLocator,
    navigation_timeout: float = 60.0,
) -> List[str]:
    """
    공고 상세 페이지를 새 탭으로 열어 공고문 이미지 조각을 캡처.
    뷰어를 찾지 못하거나 뷰어 캡처가 불가능하면 본문 영역 한 장으로 대체한다.

    Raises:
        CaptureError: 본문 영역조차 캡처할 수 없음
    """
    profile = locator.capture_profile
    page = await browser.new_page()
    viewer = None
    try:
        await page.set_viewport_size({"width": profile.viewport_width, "height": profile.min_height})
        await page.goto(announcement.url, wait_until=locator.wait_until, timeout=navigation_timeout * 1000)
        await locator.prepare(page)

        viewer = await locator.locate(page)
        if viewer is not None:
            try:
                await wait_until_rendered(viewer.frame)
                chunks = await capture_frame_chunks(viewer.frame, profile)
                if chunks:
                    return chunks
            except (CaptureError, PlaywrightError) as e:
                logger.warning(f"[{announcement.source_id}] Viewer capture failed: {type(e).__name__}: {e}")

        logger.info(f"[{announcement.source_id}] Fallback to main content screenshot")
        return await capture_main_content(page, locator.fallback_selectors, profile)
    finally:
        if viewer is not None:
            await viewer.close()
        await page.close()


async def process_announcement(
    announcement: Announcement,
    extractor: StructuredExtractor,
    browser: Optional[Browser] = None,
    settings: Optional[Settings] = None,
) -> Optional[ApplicationTarget]:
    """
    공고 1건의 자격 요건 추출.
    browser 가 없으면 저장된 자격 요건/설명 텍스트로 추출한다.

    Returns:
        ApplicationTarget 또는 None (추출 실패 - 다음 실행에서 재시도)
    """
    settings = settings or get_settings()

    if browser is None:
        target = await extractor.extract_from_text(announcement.eligibility, announcement.description)
        if target is not None and settings.enable_narrative:
            narrative = await extractor.summarize_text(announcement.eligibility, announcement.description)
            _merge_narrative(target, narrative)
        return target

    locator = get_viewer_locator(announcement.source)
    images = await capture_announcement(browser, announcement, locator, settings.navigation_timeout)
    logger.info(f"[{announcement.source_id}] Sending {len(images)} screenshots to vision model")

    target = await extractor.extract_from_images(images, IMAGE_MIME_TYPE)
    if target is not None and settings.enable_narrative:
        narrative = await extractor.summarize_images(images, IMAGE_MIME_TYPE)
        _merge_narrative(target, narrative)
    return target


def _merge_narrative(target: ApplicationTarget, narrative) -> None:
    if narrative is None:
        return
    target.ai_summary = narrative.ai_summary or target.ai_summary
    target.target_detail = narrative.target_detail or target.target_detail
    target.exclusion_detail = narrative.exclusion_detail or target.exclusion_detail


async def _process_and_store(
    semaphore: asyncio.Semaphore,
    announcement: Announcement,
    extractor: StructuredExtractor,
    browser: Optional[Browser],
    settings: Settings,
) -> bool:
    """Semaphore로 동시 처리 수를 제한하면서 단일 공고 처리. 실패는 이 안에서 끝낸다."""
    async with semaphore:
        source_id = announcement.source_id
        try:
            logger.info(f"Processing {announcement.source.value}/{source_id}: {announcement.title}")
            target = await asyncio.wait_for(
                process_announcement(announcement, extractor, browser, settings),
                timeout=settings.announcement_timeout,
            )
            if target is None:
                logger.warning(f"✗ Skipped {announcement.source.value}/{source_id}: no extraction result")
                return False

            update_extraction(announcement.source, source_id, target)
            logger.info(f"✓ Successfully processed {announcement.source.value}/{source_id}")
            return True

        except asyncio.TimeoutError:
            logger.error(f"✗ Timed out {announcement.source.value}/{source_id} after {settings.announcement_timeout:.0f}s")
            return False
        except Exception as e:
            logger.error(f"✗ Failed to process {announcement.source.value}/{source_id}: {type(e).__name__}: {e}")
            return False


async def crawl_source(
    source: Source,
    extractor: StructuredExtractor,
    browser: Optional[Browser] = None,
    limit: Optional[int] = None,
    target_id: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> CrawlResult:
    """소스 1개의 미처리 공고를 병렬(동시 처리 수 제한)로 추출."""
    settings = settings or get_settings()
    limit = limit if limit is not None else settings.crawl_limit

    try:
        announcements = fetch_announcements_for_crawl(source, limit, target_id=target_id)
    except Exception as e:
        logger.error(f"[{source.value}] Failed to load announcements: {e}")
        return CrawlResult(success=False, error=str(e))

    logger.info(f"[{source.value}] {len(announcements)} announcements to process")

    semaphore = asyncio.Semaphore(settings.max_concurrent_pages)
    tasks = [
        _process_and_store(semaphore, a, extractor, browser, settings)
        for a in announcements
    ]
    outcomes = await asyncio.gather(*tasks)
    return CrawlResult(success=True, count=sum(1 for ok in outcomes if ok))


async def run_crawl(
    sources: Optional[Iterable[Source]] = None,
    limit: Optional[int] = None,
    target_id: Optional[str] = None,
    use_browser: bool = True,
    extractor: Optional[StructuredExtractor] = None,
) -> BatchCrawlResult:
    """
    배치 크롤링. 브라우저는 배치당 한 번 띄워 모든 공고가 공유하고 마지막에 반드시 닫는다.
    브라우저 실행 실패 등 배치 수준 오류는 남은 작업을 중단하고 error 로 보고한다.
    """
    settings = get_settings()
    sources = list(sources) if sources is not None else list(Source)
    # 공고 ID 는 소스별로 따로 매겨지므로 소스가 하나일 때만 적용
    if target_id is not None and len(sources) != 1:
        logger.warning(f"target_id={target_id} ignored: specify a single source")
        target_id = None
    if extractor is None:
        extractor = StructuredExtractor(
            get_vision_llm(),
            timeout=settings.extraction_timeout,
            text_timeout=settings.text_extraction_timeout,
        )

    result = BatchCrawlResult()
    session = browser_session(settings.browser_headless) if use_browser else nullcontext()
    try:
        async with session as browser:
            for source in sources:
                logger.info(f"{source.value} 크롤링 시작...")
                result.results[source.value] = await crawl_source(
                    source, extractor, browser, limit=limit, target_id=target_id, settings=settings
                )
    except Exception as e:
        logger.error(f"크롤링 배치 오류: {type(e).__name__}: {e}")
        result.error = str(e)

    return result
