#!/usr/bin/env python3
"""
Markdown to HTML/PDF converter with Mermaid diagram support.

Markdown goes through pandoc, diagrams are pre-rendered to SVG in headless
Chromium (Playwright) where possible, and the styled HTML is printed to PDF.

MIT License - Copyright (c) 2025 PDFMaid
"""

import asyncio
import html
import os
import re
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional, Union

from colorama import Fore, Style
from tqdm import tqdm

from . import __version__
from .browser import BrowserBackend, PlaywrightBackend
from .config import Config, THEMES, parse_compact_level
from .console import ConsoleLogMixin
from .dependencies import check_dependencies, install_browsers
from .errors import BrowserUnavailableError, PandocError, PdfmaidError
from .mermaid_prerenderer import MermaidPrerenderer, extract_mermaid_blocks, splice_block
from .pdf_generator import html_to_pdf
from .template import get_html_template

MARKDOWN_EXTENSIONS = (".md", ".markdown")
HTML_EXTENSIONS = (".html", ".htm")


def render_markdown_to_html(markdown: str, input_format: str = "gfm", extra_args: Optional[List[str]] = None) -> str:
    """Convert Markdown to an HTML fragment with pandoc.

    Raw HTML in the source (such as pre-rendered diagram containers) is passed
    through untouched.
    """
    cmd = ["pandoc", "-f", input_format, "-t", "html"]
    if extra_args:
        cmd.extend(extra_args)

    try:
        result = subprocess.run(cmd, input=markdown, capture_output=True, text=True, encoding="utf-8")
    except FileNotFoundError as e:
        raise PandocError("Pandoc not found. Install it from https://pandoc.org/installing.html") from e

    if result.returncode != 0:
        raise PandocError(f"Pandoc failed: {result.stderr.strip()}")
    return result.stdout


def replace_remaining_mermaid_blocks(markdown: str) -> str:
    """Turn fenced mermaid blocks that were not pre-rendered into plain
    ``<pre class="mermaid">`` containers for client-side rendering."""
    blocks = extract_mermaid_blocks(markdown)
    for block in reversed(blocks):
        container = f'<pre class="mermaid">{html.escape(block.definition)}</pre>'
        markdown = splice_block(markdown, block, container)
    return markdown


def extract_title(path: Path, content: str) -> str:
    """Extract the document title from markdown content.

    Preference order:
    1) First ATX H1 heading starting with '# '
    2) Setext H1 style (line followed by '===')
    3) Humanized filename stem
    """
    # 1) ATX H1: lines that start with '# ' but not '## '
    for line in content.splitlines():
        stripped = line.strip()
        if stripped.startswith('# '):
            heading_text = stripped[2:].strip()
            if heading_text:
                return heading_text

    # 2) Setext H1: a line followed by a line of '=' (at least 3)
    lines = content.splitlines()
    for i in range(len(lines) - 1):
        current_line = lines[i].strip()
        underline = lines[i + 1].strip()
        if current_line and re.fullmatch(r"={3,}", underline):
            return current_line

    # 3) Fallback to humanized filename stem
    words = re.split(r"[-_\s]+", path.stem.strip())
    title = " ".join(word[:1].upper() + word[1:] for word in words if word)
    return title or path.stem


class MarkdownConverter(ConsoleLogMixin):
    """Markdown to HTML/PDF converter."""

    def __init__(self, theme: str = "default", compact_level: int = 0, include_styles: bool = True,
                 include_print_button: bool = True, prerender: bool = True, debug: bool = False,
                 backend: Optional[BrowserBackend] = None, chrome_path: Optional[str] = None):
        if theme not in THEMES:
            raise ValueError(f"Invalid theme '{theme}'. Available themes: {', '.join(THEMES)}")
        self.theme = theme
        self.compact_level = compact_level
        self.include_styles = include_styles
        self.include_print_button = include_print_button
        self.prerender = prerender
        self.debug = debug
        self.chrome_path = chrome_path
        self._backend = backend

    def _get_backend(self) -> BrowserBackend:
        if self._backend is None:
            self._backend = PlaywrightBackend(executable_path=self.chrome_path, debug=self.debug)
        return self._backend

    def _prerender_diagrams(self, markdown: str) -> str:
        """Run the Mermaid pre-render pass, falling back to the input on browser failure."""
        if not extract_mermaid_blocks(markdown):
            return markdown

        prerenderer = MermaidPrerenderer(backend=self._get_backend(), debug=self.debug, show_progress=True)
        event_loop = asyncio.new_event_loop()
        try:
            result = event_loop.run_until_complete(prerenderer.prerender(markdown, theme=self.theme))
        except BrowserUnavailableError as e:
            self._log_warning(f"Skipping diagram pre-rendering: {e}")
            return markdown
        finally:
            event_loop.close()

        if prerenderer.failures:
            self._log_warning(f"{len(prerenderer.failures)} diagram(s) will be rendered client-side instead")
        return result

    def markdown_to_html(self, markdown: str, title: str = "Document") -> str:
        """Convert Markdown text to a complete, styled HTML document."""
        content = markdown
        if self.prerender:
            content = self._prerender_diagrams(content)
        content = replace_remaining_mermaid_blocks(content)

        fragment = render_markdown_to_html(content)
        return get_html_template(
            fragment,
            title=title,
            theme=self.theme,
            include_styles=self.include_styles,
            include_print_button=self.include_print_button,
            compact_level=self.compact_level,
        )

    def convert_markdown_file(self, input_path: Union[str, Path], output_path: Union[str, Path],
                              title: Optional[str] = None) -> Path:
        """Convert a Markdown file to an HTML file."""
        md_file = Path(input_path)
        if not md_file.exists():
            raise FileNotFoundError(f"Input file not found: {md_file}")

        with open(md_file, 'r', encoding='utf-8') as f:
            markdown = f.read()

        doc_title = title or extract_title(md_file, markdown)
        self._log_debug(f"Document title: {doc_title}")
        document = self.markdown_to_html(markdown, title=doc_title)

        output_html = Path(output_path)
        with open(output_html, 'w', encoding='utf-8') as f:
            f.write(document)
        return output_html

    def convert_markdown_to_pdf(self, input_path: Path, output_pdf: Path, title: Optional[str] = None,
                                wait_time_ms: int = 2000, landscape: bool = False,
                                keep_html: bool = False, temp_dir: Optional[Path] = None) -> Path:
        """Convert a Markdown file to PDF through an intermediate HTML file."""
        if keep_html:
            html_file = input_path.with_suffix(".html")
        else:
            html_dir = temp_dir or output_pdf.parent
            html_file = Path(html_dir) / f"pdfmaid-{os.getpid()}-{int(time.time() * 1000)}.html"

        filename = input_path.name
        try:
            with tqdm(total=2, desc=f"  {filename}", unit="step", leave=False) as pbar:
                pbar.set_description(f"  {filename} - HTML")
                self.convert_markdown_file(input_path, html_file, title=title)
                pbar.update(1)

                pbar.set_description(f"  {filename} - PDF")
                html_to_pdf(html_file, output_pdf, wait_time_ms=wait_time_ms, landscape=landscape,
                            chrome_path=self.chrome_path, debug=self.debug)
                pbar.update(1)
        finally:
            if not keep_html and html_file.exists():
                html_file.unlink()

        if keep_html:
            self._log_info(f"HTML file saved: {html_file}")
        return output_pdf


def markdown_to_html(markdown: str, title: str = "Document", theme: str = "default", include_styles: bool = True,
                     include_print_button: bool = True, compact_level: int = 0, prerender: bool = False,
                     backend: Optional[BrowserBackend] = None, debug: bool = False) -> str:
    """Convert Markdown to a full HTML document."""
    converter = MarkdownConverter(theme=theme, compact_level=compact_level, include_styles=include_styles,
                                  include_print_button=include_print_button, prerender=prerender,
                                  debug=debug, backend=backend)
    return converter.markdown_to_html(markdown, title=title)


def convert_markdown_file(input_path: Union[str, Path], output_path: Union[str, Path],
                          title: Optional[str] = None, **options) -> Path:
    """Convert a Markdown file to an HTML file. ``options`` as for markdown_to_html."""
    options.setdefault("prerender", False)
    return MarkdownConverter(**options).convert_markdown_file(input_path, output_path, title=title)


def _resolve_output(input_file: Path, output: Optional[str], output_format: Optional[str]) -> tuple[Path, str]:
    """Work out the output path and format from the -o/-f arguments."""
    output_file = None
    if output in ("pdf", "html"):
        output_format = output_format or output
    elif output:
        output_file = Path(output)

    if output_file is None:
        output_file = input_file.with_suffix(f".{output_format or 'pdf'}")

    # Infer output format from output file extension if not explicitly set
    suffix = output_file.suffix.lower()
    if output_format is None:
        output_format = "html" if suffix in HTML_EXTENSIONS else "pdf"

    # Ensure output has correct extension
    if output_format == "pdf" and suffix != ".pdf":
        output_file = output_file.with_name(output_file.name + ".pdf")
    elif output_format == "html" and suffix not in HTML_EXTENSIONS:
        output_file = output_file.with_name(output_file.name + ".html")

    return output_file, output_format


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(prog="pdfmaid", description="Convert Markdown to PDF/HTML with pre-rendered Mermaid diagrams")
    parser.add_argument("input", nargs="?", help="Input file (.md, .markdown, .html, .htm)")
    parser.add_argument("-o", "--output", default=None, help="Output format ('pdf' or 'html') or output file path (default: pdf)")
    parser.add_argument("-f", "--format", default=None, choices=["pdf", "html"], help="Output format")
    parser.add_argument("-t", "--title", default=None, help="Document title (default: first heading or filename)")
    parser.add_argument("--theme", default=None, choices=list(THEMES), help="Theme (default: 'default')")
    parser.add_argument("-c", "--compact", default=None, help="Compactness level from -5 (most compact) to 5 (most spacious). Default: 0")
    parser.add_argument("-w", "--wait", type=int, default=None, help="Wait time for client-side Mermaid rendering in ms (default: 2000)")
    parser.add_argument("--landscape", action="store_true", help="Use landscape orientation for PDF")
    parser.add_argument("--keep-html", action="store_true", help="Keep intermediate HTML file (for md to pdf conversion)")
    parser.add_argument("--no-interactive", action="store_true", help="Disable interactive features (print/copy buttons)")
    parser.add_argument("--no-prerender", action="store_true", help="Render diagrams client-side instead of pre-rendering them to SVG")
    parser.add_argument("--chrome", default=None, help="Path to Chrome/Chromium executable (default: CHROME_PATH, then an installed Chrome if found, else Playwright's Chromium)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging for detailed output")
    parser.add_argument("--install-browsers", action="store_true", help="Install Playwright's Chromium and exit")
    parser.add_argument("-v", "--version", action="version", version=f"PDFMaid v{__version__}")

    args = parser.parse_args()

    if args.install_browsers:
        sys.exit(0 if install_browsers() else 1)

    if not args.input:
        parser.error("Input file is required")

    try:
        compact = parse_compact_level(args.compact) if args.compact is not None else None
    except ValueError as e:
        parser.error(str(e))

    # Build config from CLI args
    cli_config = {
        "theme": args.theme,
        "compact_level": compact,
        "wait_time_ms": args.wait,
        "chrome_path": args.chrome,
    }
    if args.landscape:
        cli_config["landscape"] = True
    if args.no_prerender:
        cli_config["prerender"] = False
    config = Config(cli_config)

    input_file = Path(args.input)
    try:
        if not input_file.exists():
            raise FileNotFoundError(f"Input file not found: {input_file}")

        input_ext = input_file.suffix.lower()
        is_markdown = input_ext in MARKDOWN_EXTENSIONS
        if not is_markdown and input_ext not in HTML_EXTENSIONS:
            raise ValueError(f"Unsupported file type: {input_ext}. Supported types: .md, .markdown, .html, .htm")

        output_file, output_format = _resolve_output(input_file, args.output, args.format)
        if not is_markdown and output_format == "html":
            raise ValueError("Cannot convert HTML to HTML. Input is already HTML.")

        # Check dependencies
        if is_markdown and not check_dependencies(check_optional=output_format == "pdf"):
            sys.exit(1)

        print(f"{Fore.GREEN}[INFO]{Style.RESET_ALL} Input:  {input_file} ({'Markdown' if is_markdown else 'HTML'})")
        print(f"{Fore.GREEN}[INFO]{Style.RESET_ALL} Output: {output_file} ({output_format.upper()})")

        chrome_path = config.get_chrome_path()
        converter = MarkdownConverter(
            theme=config.get_theme(),
            compact_level=config.get_compact_level(),
            include_print_button=not args.no_interactive and output_format == "html",
            prerender=config.get_prerender(),
            debug=args.debug,
            chrome_path=chrome_path,
        )

        if is_markdown and output_format == "html":
            converter.convert_markdown_file(input_file, output_file, title=args.title)
        elif is_markdown:
            converter.convert_markdown_to_pdf(
                input_file, output_file, title=args.title,
                wait_time_ms=config.get_wait_time_ms(), landscape=config.get_landscape(),
                keep_html=args.keep_html, temp_dir=config.get_temp_dir(),
            )
        else:
            html_to_pdf(input_file, output_file, wait_time_ms=config.get_wait_time_ms(),
                        landscape=config.get_landscape(), chrome_path=chrome_path, debug=args.debug)

        converter._log_success(f"Conversion complete: {output_file}")
    except (PdfmaidError, FileNotFoundError, ValueError) as e:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
