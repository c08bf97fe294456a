"""
Headless browser abstraction.

The Mermaid pre-renderer and the PDF generator only talk to the small
interface below, so the rest of pdfmaid works (and can be tested) without a
browser installed. ``PlaywrightBackend`` is the real implementation; it imports
Playwright lazily.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from .console import ConsoleLogMixin
from .dependencies import is_playwright_available
from .errors import BrowserUnavailableError


class BrowserTab(ABC):
    """One browser page, used for a single diagram and then closed."""

    @abstractmethod
    async def load(self, html: str) -> None:
        """Load an HTML document and wait for network activity to settle."""

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait until ``selector`` is attached; False on timeout."""

    @abstractmethod
    async def wait(self, ms: int) -> None:
        """Sleep inside the page for ``ms`` milliseconds."""

    @abstractmethod
    async def bounding_box(self, selector: str) -> Optional[Dict[str, float]]:
        """Laid-out box of the first match, or None."""

    @abstractmethod
    async def outer_html(self, selector: str) -> Optional[str]:
        """Serialized markup of the first match, or None."""

    @abstractmethod
    async def goto(self, url: str) -> None:
        """Navigate to ``url`` and wait for network activity to settle."""

    @abstractmethod
    async def pdf(self, path: str, landscape: bool = False) -> None:
        """Print the page to an A4 PDF at ``path``, with backgrounds."""

    @abstractmethod
    async def close(self) -> None:
        ...


class BrowserSession(ABC):
    """A running browser that hands out tabs."""

    @abstractmethod
    async def new_tab(self, width: int, height: int, device_scale_factor: float = 1) -> BrowserTab:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class BrowserBackend(ABC):
    """Factory for browser sessions."""

    @abstractmethod
    def is_available(self) -> bool:
        ...

    @abstractmethod
    async def start_session(self) -> BrowserSession:
        ...


class PlaywrightTab(BrowserTab):
    def __init__(self, page: Any):
        self.page = page

    async def load(self, html: str) -> None:
        await self.page.set_content(html, wait_until="networkidle")

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        from playwright.async_api import TimeoutError as PlaywrightTimeoutError

        try:
            await self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def wait(self, ms: int) -> None:
        await self.page.wait_for_timeout(ms)

    async def bounding_box(self, selector: str) -> Optional[Dict[str, float]]:
        element = await self.page.query_selector(selector)
        if element is None:
            return None
        return await element.bounding_box()

    async def outer_html(self, selector: str) -> Optional[str]:
        return await self.page.evaluate(
            "(sel) => { const el = document.querySelector(sel); return el ? el.outerHTML : null; }",
            selector,
        )

    async def goto(self, url: str) -> None:
        await self.page.goto(url)
        await self.page.wait_for_load_state("networkidle")

    async def pdf(self, path: str, landscape: bool = False) -> None:
        await self.page.pdf(
            path=path,
            format="A4",
            landscape=landscape,
            print_background=True,
            display_header_footer=False,
            scale=1.0,
        )

    async def close(self) -> None:
        if not self.page.is_closed():
            await self.page.close()


class PlaywrightSession(ConsoleLogMixin, BrowserSession):
    def __init__(self, playwright: Any, browser: Any, debug: bool = False):
        self._playwright = playwright
        self._browser = browser
        self.debug = debug

    async def new_tab(self, width: int, height: int, device_scale_factor: float = 1) -> PlaywrightTab:
        page = await self._browser.new_page(
            viewport={"width": width, "height": height},
            device_scale_factor=device_scale_factor,
        )
        return PlaywrightTab(page)

    async def close(self) -> None:
        """Close browser and cleanup resources."""
        # Grab references and null them out first to prevent double-close
        browser, pw = self._browser, self._playwright
        self._browser = None
        self._playwright = None

        try:
            if browser and browser.is_connected():
                await browser.close()
        except Exception as e:
            self._log_debug(f"Ignoring error while closing browser: {e}")
        try:
            if pw:
                await pw.stop()
        except Exception as e:
            self._log_debug(f"Ignoring error while stopping Playwright: {e}")

        self._log_debug("Browser instance closed and cleaned up")


class PlaywrightBackend(ConsoleLogMixin, BrowserBackend):
    """Headless Chromium through ``playwright.async_api``."""

    LAUNCH_ARGS = [
        "--no-sandbox",              # Required in some environments
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",   # Use /tmp instead of /dev/shm (prevents OOM crashes)
        "--disable-gpu",             # No GPU in headless mode
    ]

    def __init__(self, executable_path: Optional[str] = None, headless: bool = True, debug: bool = False):
        self.executable_path = executable_path
        self.headless = headless
        self.debug = debug

    def is_available(self) -> bool:
        return is_playwright_available()

    async def start_session(self) -> PlaywrightSession:
        """Launch a fresh Chromium browser instance."""
        if not self.is_available():
            raise BrowserUnavailableError("Playwright is not installed (pip install playwright)")

        from playwright.async_api import async_playwright

        self._log_debug("Initializing browser instance")
        pw = None
        try:
            pw = await async_playwright().start()
            launch_kwargs: Dict[str, Any] = {"headless": self.headless, "args": self.LAUNCH_ARGS}
            if self.executable_path:
                launch_kwargs["executable_path"] = self.executable_path
            browser = await pw.chromium.launch(**launch_kwargs)
        except Exception as e:
            if pw is not None:
                try:
                    await pw.stop()
                except Exception as stop_error:
                    self._log_debug(f"Ignoring error while stopping Playwright: {stop_error}")
            raise BrowserUnavailableError(f"Failed to launch browser: {e}") from e

        return PlaywrightSession(pw, browser, debug=self.debug)
