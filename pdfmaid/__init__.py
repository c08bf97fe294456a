"""
PDFMaid - Markdown to HTML/PDF with pre-rendered Mermaid diagrams.
"""

__version__ = "1.0.0"

from .errors import (
    BrowserUnavailableError,
    DiagramRenderError,
    PandocError,
    PdfGenerationError,
    PdfmaidError,
)
from .browser import BrowserBackend, BrowserSession, BrowserTab, PlaywrightBackend
from .dependencies import find_chrome, is_playwright_available
from .mermaid_prerenderer import (
    DiagramBlock,
    DiagramKind,
    MermaidPrerenderer,
    ViewportSpec,
    detect_diagram_type,
    extract_mermaid_blocks,
    get_viewport_for_diagram_type,
    prerender_mermaid_diagrams,
    render_diagram_to_svg,
)
from .template import get_html_template, get_styles
from .pdf_generator import html_to_pdf
from .converter import convert_markdown_file, markdown_to_html, render_markdown_to_html

__all__ = [
    "BrowserBackend",
    "BrowserSession",
    "BrowserTab",
    "BrowserUnavailableError",
    "DiagramBlock",
    "DiagramKind",
    "DiagramRenderError",
    "MermaidPrerenderer",
    "PandocError",
    "PdfGenerationError",
    "PdfmaidError",
    "PlaywrightBackend",
    "ViewportSpec",
    "convert_markdown_file",
    "detect_diagram_type",
    "extract_mermaid_blocks",
    "find_chrome",
    "get_html_template",
    "get_styles",
    "get_viewport_for_diagram_type",
    "html_to_pdf",
    "is_playwright_available",
    "markdown_to_html",
    "prerender_mermaid_diagrams",
    "render_diagram_to_svg",
    "render_markdown_to_html",
]
