"""Tests for PDF printing, browser discovery and dependency checks."""

import pytest

from pdfmaid import dependencies
from pdfmaid.dependencies import check_dependencies, find_chrome, is_playwright_available
from pdfmaid.errors import PdfGenerationError
from pdfmaid.pdf_generator import PdfGenerator, html_to_pdf
from tests.fakes import FakeBackend, FakeSession, FakeTab


def _session_with(tab):
    """Session that hands out the same tab every time so failures can span attempts."""
    return FakeSession(tab_factory=lambda: tab)


@pytest.fixture
def html_file(tmp_path):
    path = tmp_path / "doc.html"
    path.write_text("<html><body>hi</body></html>", encoding="utf-8")
    return path


class TestPdfGenerator:
    @pytest.mark.asyncio
    async def test_any_backend_can_print(self, html_file, tmp_path, fake_backend):
        output = tmp_path / "doc.pdf"

        result = await PdfGenerator(backend=fake_backend).convert(html_file, output)

        assert result == output
        assert output.read_bytes().startswith(b"%PDF")
        assert fake_backend.session.tabs[0].urls == [html_file.absolute().as_uri()]
        assert fake_backend.session.closed

    @pytest.mark.asyncio
    async def test_prints_to_file(self, html_file, tmp_path):
        tab = FakeTab()
        session = _session_with(tab)
        output = tmp_path / "doc.pdf"

        await PdfGenerator(backend=FakeBackend(session=session)).convert(html_file, output, wait_time_ms=750, landscape=True)

        assert tab.waits == [750]
        assert tab.printed == [(str(output), True)]
        assert session.tab_sizes == [(1240, 1754, 1)]
        assert tab.closed
        assert session.close_count == 1

    @pytest.mark.asyncio
    async def test_zero_wait_skips_delay(self, html_file, tmp_path):
        tab = FakeTab()
        await PdfGenerator(backend=FakeBackend(session=_session_with(tab))).convert(html_file, tmp_path / "doc.pdf", wait_time_ms=0)
        assert tab.waits == []

    @pytest.mark.asyncio
    async def test_retries_once_after_crash(self, html_file, tmp_path):
        tab = FakeTab(goto_errors=[RuntimeError("Target closed")])
        session = _session_with(tab)
        backend = FakeBackend(session=session)
        output = tmp_path / "doc.pdf"

        await PdfGenerator(backend=backend).convert(html_file, output)

        assert backend.start_count == 2
        assert session.close_count == 2
        assert output.exists()

    @pytest.mark.asyncio
    async def test_repeated_crash_gives_up(self, html_file, tmp_path):
        tab = FakeTab(goto_errors=[RuntimeError("Target closed"), RuntimeError("Target closed")])
        backend = FakeBackend(session=_session_with(tab))

        with pytest.raises(PdfGenerationError, match="Target closed"):
            await PdfGenerator(backend=backend).convert(html_file, tmp_path / "doc.pdf")
        assert backend.start_count == 2

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self, html_file, tmp_path):
        tab = FakeTab(goto_errors=[RuntimeError("net::ERR_FILE_NOT_FOUND")])
        backend = FakeBackend(session=_session_with(tab))

        with pytest.raises(PdfGenerationError, match="Failed to generate PDF"):
            await PdfGenerator(backend=backend).convert(html_file, tmp_path / "doc.pdf")
        assert backend.start_count == 1


def test_html_to_pdf_missing_input(tmp_path):
    with pytest.raises(FileNotFoundError, match="Input file not found"):
        html_to_pdf(tmp_path / "missing.html", tmp_path / "out.pdf")


class TestFindChrome:
    def test_env_override(self, monkeypatch, tmp_path):
        chrome = tmp_path / "my-chrome"
        chrome.write_text("", encoding="utf-8")
        monkeypatch.setenv("CHROME_PATH", str(chrome))
        assert find_chrome() == str(chrome)

    def test_nothing_found(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CHROME_PATH", raising=False)
        monkeypatch.setattr(dependencies, "CHROME_CANDIDATES", [str(tmp_path / "absent")])
        monkeypatch.setattr(dependencies.shutil, "which", lambda name: None)
        assert find_chrome() is None

    def test_path_lookup(self, monkeypatch):
        monkeypatch.delenv("CHROME_PATH", raising=False)
        monkeypatch.setattr(dependencies, "CHROME_CANDIDATES", [])
        monkeypatch.setattr(dependencies.shutil, "which", lambda name: "/opt/bin/chromium" if name == "chromium" else None)
        assert find_chrome() == "/opt/bin/chromium"


class TestCheckDependencies:
    @pytest.fixture(autouse=True)
    def tools_present(self, monkeypatch):
        monkeypatch.setattr(dependencies, "check_command", lambda cmd, description: True)
        monkeypatch.setattr(dependencies, "is_playwright_available", lambda: True)

    def test_required_only(self, monkeypatch, capsys):
        monkeypatch.setattr(dependencies, "find_chrome", lambda: "/usr/bin/chromium")
        assert check_dependencies() is True
        assert "Chrome" not in capsys.readouterr().out

    def test_reports_system_chrome(self, monkeypatch, capsys):
        monkeypatch.setattr(dependencies, "find_chrome", lambda: "/usr/bin/chromium")
        assert check_dependencies(check_optional=True) is True
        assert "Chrome found at /usr/bin/chromium" in capsys.readouterr().out

    def test_missing_chrome_is_not_fatal(self, monkeypatch, capsys):
        monkeypatch.setattr(dependencies, "find_chrome", lambda: None)
        assert check_dependencies(check_optional=True) is True
        assert "using Playwright's Chromium" in capsys.readouterr().out

    def test_missing_pandoc_fails(self, monkeypatch):
        monkeypatch.setattr(dependencies, "check_command", lambda cmd, description: False)
        assert check_dependencies() is False


def test_playwright_is_importable():
    assert is_playwright_available()
