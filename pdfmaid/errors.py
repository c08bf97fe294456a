"""Exceptions raised by pdfmaid."""

from typing import Optional


class PdfmaidError(Exception):
    """Base class for all pdfmaid errors."""


class DiagramRenderError(PdfmaidError):
    """A single Mermaid diagram could not be rendered to SVG.

    Carries the diagram's 1-based position in the document (when known) so
    the failure can be reported without aborting the rest of the document.
    """

    def __init__(self, message: str, position: Optional[int] = None, diagram_type: Optional[str] = None):
        self.message = message
        self.position = position
        self.diagram_type = diagram_type
        prefix = f"Diagram {position}: " if position is not None else ""
        super().__init__(f"{prefix}{message}")


class BrowserUnavailableError(PdfmaidError):
    """A headless browser session could not be started."""


class PandocError(PdfmaidError):
    """Pandoc is missing or failed to convert the document."""


class PdfGenerationError(PdfmaidError):
    """Printing an HTML file to PDF failed."""
