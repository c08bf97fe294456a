"""
Print HTML files to PDF with headless Chromium (Playwright).

MIT License - Copyright (c) 2025 PDFMaid
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

from .browser import BrowserBackend, PlaywrightBackend
from .console import ConsoleLogMixin
from .errors import PdfGenerationError

CRASH_KEYWORDS = ["Connection closed", "Browser has been closed", "Target closed", "crashed", "Protocol error"]


class PdfGenerator(ConsoleLogMixin):
    """Convert HTML to PDF using Playwright (Puppeteer approach)."""

    def __init__(self, chrome_path: Optional[str] = None, debug: bool = False, backend: Optional[BrowserBackend] = None):
        self.debug = debug
        self.backend = backend if backend is not None else PlaywrightBackend(executable_path=chrome_path, debug=debug)

    async def convert(self, html_file: Path, output_pdf: Path, wait_time_ms: int = 2000, landscape: bool = False) -> Path:
        """Print ``html_file`` to ``output_pdf``.

        Retries once with a fresh browser if the browser process crashes mid-conversion.
        """
        max_attempts = 2

        for attempt in range(1, max_attempts + 1):
            session = await self.backend.start_session()
            try:
                tab = await session.new_tab(1240, 1754)
                try:
                    await tab.goto(html_file.absolute().as_uri())
                    if wait_time_ms > 0:
                        # Give client-side Mermaid time to render leftover diagrams
                        await tab.wait(wait_time_ms)
                    await tab.pdf(str(output_pdf), landscape=landscape)
                finally:
                    await tab.close()
                break
            except Exception as e:
                error_msg = str(e)
                is_crash = any(kw in error_msg for kw in CRASH_KEYWORDS)
                if is_crash and attempt < max_attempts:
                    self._log_warning("Browser crashed during PDF generation, restarting and retrying...")
                    continue
                raise PdfGenerationError(f"Failed to generate PDF: {e}") from e
            finally:
                await session.close()

        if not output_pdf.exists():
            raise PdfGenerationError("PDF was not created")
        return output_pdf


def html_to_pdf(
    html_path: Union[str, Path],
    pdf_path: Union[str, Path],
    wait_time_ms: int = 2000,
    landscape: bool = False,
    chrome_path: Optional[str] = None,
    debug: bool = False,
) -> Path:
    """Convert an HTML file to a PDF file and return the absolute PDF path."""
    html_file = Path(html_path).resolve()
    if not html_file.exists():
        raise FileNotFoundError(f"Input file not found: {html_file}")

    output_pdf = Path(pdf_path).resolve()
    output_pdf.parent.mkdir(parents=True, exist_ok=True)

    generator = PdfGenerator(chrome_path=chrome_path, debug=debug)
    return asyncio.run(generator.convert(html_file, output_pdf, wait_time_ms=wait_time_ms, landscape=landscape))
