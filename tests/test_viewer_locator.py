"""
Unit tests for document viewer discovery.
"""
from contextlib import asynccontextmanager

import pytest
from playwright.async_api import Error as PlaywrightError

from models.announcement import Source
from services.viewer import get_viewer_locator
from services.viewer.frame_scan import FrameScanLocator
from services.viewer.new_target import NewTargetLocator


class FakeFrame:
    def __init__(self, url):
        self.url = url


class FakePage:
    url = "https://example.com/detail"

    def __init__(self, frames=None, attached_later=None, after_polls=0):
        self._frames = list(frames or [])
        self._attached_later = attached_later
        self._after_polls = after_polls
        self.polls = 0

    @property
    def frames(self):
        self.polls += 1
        if self._attached_later is not None and self.polls > self._after_polls:
            return self._frames + [self._attached_later]
        return self._frames

    async def query_selector(self, selector):
        return None


class FakeButton:
    def __init__(self, name):
        self.name = name
        self.clicked = False

    async def click(self):
        self.clicked = True


class FakeAttachment:
    def __init__(self, text, button=None):
        self.text = text
        self.button = button

    async def text_content(self):
        return self.text

    async def query_selector(self, selector):
        assert selector == ".btn_view"
        return self.button


class FakePopupPage:
    url = "https://viewer.example.com/doc"

    def __init__(self, body_ready=True):
        self.main_frame = FakeFrame(self.url)
        self.body_ready = body_ready
        self.closed = False

    async def wait_for_selector(self, selector, timeout=None):
        if not self.body_ready:
            raise PlaywrightError("Timeout exceeded")

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


class FakePopupInfo:
    def __init__(self):
        self.page = None

    @property
    def value(self):
        async def _value():
            return self.page
        return _value()


class FakeDetailPage:
    url = "https://example.com/kstartup/detail"

    def __init__(self, attachments, popup=None):
        self.attachments = attachments
        self.popup = popup
        self.popup_timeouts = []

    async def query_selector(self, selector):
        return object() if selector == ".board_file" and self.attachments is not None else None

    async def query_selector_all(self, selector):
        return list(self.attachments or [])

    @asynccontextmanager
    async def expect_popup(self, timeout=None):
        self.popup_timeouts.append(timeout)
        info = FakePopupInfo()
        yield info
        if self.popup is None:
            raise PlaywrightError(f"Timeout {timeout:.0f}ms exceeded while waiting for event \"popup\"")
        info.page = self.popup


class TestFrameScanLocator:

    @pytest.mark.asyncio
    async def test_finds_viewer_frame(self):
        viewer = FakeFrame("https://doc.example.com/synap/skin/doc.html?fn=1")
        page = FakePage(frames=[FakeFrame("https://example.com/detail"), viewer])

        target = await FrameScanLocator(timeout=1).locate(page)

        assert target is not None
        assert target.frame is viewer
        assert target.owned_page is None

    @pytest.mark.asyncio
    async def test_waits_for_frame_to_attach(self):
        viewer = FakeFrame("https://example.com/dxviewer/index.jsp")
        page = FakePage(frames=[FakeFrame("about:blank")], attached_later=viewer, after_polls=2)

        target = await FrameScanLocator(poll_interval=0.01, timeout=1).locate(page)

        assert target.frame is viewer
        assert page.polls == 3

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self):
        page = FakePage(frames=[FakeFrame("https://example.com/detail")])

        target = await FrameScanLocator(poll_interval=0.01, timeout=0.05).locate(page)

        assert target is None
        assert page.polls >= 2

    def test_marker_match(self):
        locator = FrameScanLocator()
        assert locator.is_viewer_url("https://x.kr/pdfjs/web/viewer.html")
        assert not locator.is_viewer_url("https://x.kr/board/view.do")


class TestNewTargetLocator:

    @pytest.mark.asyncio
    async def test_no_attachment_list_returns_none(self):
        assert await NewTargetLocator().locate(FakePage()) is None

    @pytest.mark.asyncio
    async def test_prefers_keyword_attachment(self):
        first, notice = FakeButton("first"), FakeButton("notice")
        page = FakeDetailPage([
            FakeAttachment("사업계획서 양식.hwp", first),
            FakeAttachment("2025년 창업지원 모집공고.pdf", notice),
        ])

        button = await NewTargetLocator().pick_view_button(page)

        assert button is notice

    @pytest.mark.asyncio
    async def test_falls_back_to_first_attachment(self):
        first = FakeButton("first")
        page = FakeDetailPage([
            FakeAttachment("서식1.hwp", first),
            FakeAttachment("서식2.hwp", FakeButton("second")),
        ])

        assert await NewTargetLocator().pick_view_button(page) is first

    @pytest.mark.asyncio
    async def test_keyword_attachment_without_button(self):
        page = FakeDetailPage([
            FakeAttachment("서식.hwp", FakeButton("first")),
            FakeAttachment("안내문.zip", None),
        ])

        assert await NewTargetLocator().pick_view_button(page) is None
        assert await NewTargetLocator().locate(page) is None

    @pytest.mark.asyncio
    async def test_click_opens_owned_viewer_page(self):
        button = FakeButton("notice")
        popup = FakePopupPage()
        page = FakeDetailPage([FakeAttachment("모집공고.pdf", button)], popup=popup)

        target = await NewTargetLocator(stabilize_seconds=0).locate(page)

        assert button.clicked
        assert page.popup_timeouts == [30000]
        assert target.frame is popup.main_frame
        assert target.owned_page is popup

        await target.close()
        assert popup.closed

    @pytest.mark.asyncio
    async def test_popup_timeout_returns_none(self):
        button = FakeButton("notice")
        page = FakeDetailPage([FakeAttachment("모집공고.pdf", button)], popup=None)

        target = await NewTargetLocator(popup_timeout=0.5, stabilize_seconds=0).locate(page)

        assert button.clicked
        assert target is None
        assert page.popup_timeouts == [500]

    @pytest.mark.asyncio
    async def test_viewer_body_not_ready_closes_popup(self):
        popup = FakePopupPage(body_ready=False)
        page = FakeDetailPage([FakeAttachment("모집공고.pdf", FakeButton("notice"))], popup=popup)

        target = await NewTargetLocator(stabilize_seconds=0).locate(page)

        assert target is None
        assert popup.closed


class TestFactory:

    def test_variant_by_source(self):
        assert isinstance(get_viewer_locator(Source.BIZINFO), FrameScanLocator)
        assert isinstance(get_viewer_locator(Source.KSTARTUP), NewTargetLocator)

    def test_capture_profiles_bounded(self):
        for source in Source:
            profile = get_viewer_locator(source).capture_profile
            assert 5 <= profile.max_chunks <= 6
            assert profile.min_height <= profile.max_height
