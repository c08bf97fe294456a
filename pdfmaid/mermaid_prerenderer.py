"""
Pre-render Mermaid diagrams in Markdown to inline SVG using a headless browser.

Each ```mermaid block is rendered in its own browser tab and the resulting SVG
is spliced back into the Markdown in place of the fenced block. Blocks that fail
to render are left untouched so the client-side fallback can still pick them up.

MIT License - Copyright (c) 2025 PDFMaid
"""

import html
import json
import math
import re
import textwrap
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple, Union

from tqdm import tqdm

from .browser import BrowserBackend, BrowserSession, PlaywrightBackend
from .console import ConsoleLogMixin
from .errors import DiagramRenderError

MERMAID_CDN_URL = "https://cdn.jsdelivr.net/npm/mermaid@10.6.1/dist/mermaid.min.js"

DEVICE_SCALE_FACTOR = 2
SVG_WAIT_TIMEOUT_MS = 10000
SETTLE_DELAY_MS = 500
SVG_SELECTOR = "#container svg"

# Gantt widening heuristics
GANTT_MANY_TASKS = 10
GANTT_VERY_MANY_TASKS = 15
GANTT_WIDE_WIDTH = 2000
GANTT_EXTRA_WIDE_WIDTH = 2200
GANTT_MAX_ISO_DATES = 4

_MERMAID_BLOCK_RE = re.compile(
    r"^[ \t]{0,3}```mermaid[ \t]*\r?\n(.*?)^[ \t]{0,3}```[ \t]*\r?$",
    re.MULTILINE | re.DOTALL | re.IGNORECASE,
)
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_SVG_OPEN_TAG_RE = re.compile(r"<svg\b[^>]*>", re.IGNORECASE)
_SIZE_ATTR_RE = re.compile(r"""\s(?:style|width|height)\s*=\s*(?:"[^"]*"|'[^']*')""", re.IGNORECASE)
_CLASS_ATTR_RE = re.compile(r'\sclass\s*=\s*"([^"]*)"', re.IGNORECASE)
_VIEW_BOX_RE = re.compile(r"""\sviewBox\s*=\s*["']([^"']*)["']""", re.IGNORECASE)

PRERENDERED_CLASS = "mermaid-prerendered"


class DiagramKind(str, Enum):
    FLOWCHART = "flowchart"
    SEQUENCE = "sequence"
    CLASS = "class"
    STATE = "state"
    ER = "er"
    JOURNEY = "journey"
    PIE = "pie"
    GITGRAPH = "gitgraph"
    TIMELINE = "timeline"
    MINDMAP = "mindmap"
    QUADRANT = "quadrant"
    GANTT = "gantt"


# Evaluated in order, first matching prefix wins
_KIND_PREFIXES = [
    (("gantt",), DiagramKind.GANTT),
    (("sequencediagram", "sequence"), DiagramKind.SEQUENCE),
    (("flowchart", "graph"), DiagramKind.FLOWCHART),
    (("classdiagram", "class"), DiagramKind.CLASS),
    (("statediagram", "state"), DiagramKind.STATE),
    (("erdiagram", "er"), DiagramKind.ER),
    (("journey",), DiagramKind.JOURNEY),
    (("pie",), DiagramKind.PIE),
    (("gitgraph", "git"), DiagramKind.GITGRAPH),
    (("timeline",), DiagramKind.TIMELINE),
    (("mindmap",), DiagramKind.MINDMAP),
    (("quadrantchart", "quadrant"), DiagramKind.QUADRANT),
]


@dataclass(frozen=True)
class DiagramBlock:
    """A fenced mermaid block found in the source text."""

    raw_match: str
    definition: str
    source_offset: int


@dataclass(frozen=True)
class ViewportSpec:
    width: int
    height: int


DEFAULT_VIEWPORT = ViewportSpec(1200, 800)

VIEWPORTS = {
    DiagramKind.GANTT: ViewportSpec(1800, 800),      # Gantt needs wide viewport
    DiagramKind.TIMELINE: ViewportSpec(1600, 600),
    DiagramKind.GITGRAPH: ViewportSpec(1400, 600),
    DiagramKind.SEQUENCE: ViewportSpec(1200, 800),   # Sequence diagrams grow tall
    DiagramKind.FLOWCHART: ViewportSpec(1200, 800),
    DiagramKind.CLASS: ViewportSpec(1200, 800),
    DiagramKind.STATE: ViewportSpec(1200, 800),
    DiagramKind.ER: ViewportSpec(1400, 800),
    DiagramKind.JOURNEY: ViewportSpec(1400, 600),
    DiagramKind.PIE: ViewportSpec(800, 600),
    DiagramKind.MINDMAP: ViewportSpec(1400, 800),
    DiagramKind.QUADRANT: ViewportSpec(800, 800),
}


def extract_mermaid_blocks(markdown: str) -> List[DiagramBlock]:
    """Return every fenced mermaid block in source order.

    A block opens on a line holding only ```mermaid (any case, optional
    trailing whitespace, up to three spaces of indent) and closes at the next
    line holding only ```. Definitions are dedented.
    """
    return [
        DiagramBlock(raw_match=match.group(0), definition=textwrap.dedent(match.group(1)).strip(), source_offset=match.start())
        for match in _MERMAID_BLOCK_RE.finditer(markdown)
    ]


def detect_diagram_type(definition: str) -> DiagramKind:
    """Classify a Mermaid definition by its leading keyword, defaulting to flowchart."""
    trimmed = definition.strip().lower()
    for prefixes, kind in _KIND_PREFIXES:
        if trimmed.startswith(prefixes):
            return kind
    return DiagramKind.FLOWCHART


def _count_gantt_tasks(definition: str) -> int:
    count = 0
    for line in definition.split("\n"):
        stripped = line.strip().lower()
        if ":" not in line:
            continue
        if stripped.startswith(("title", "dateformat", "section")):
            continue
        count += 1
    return count


def get_viewport_for_diagram_type(diagram_type: Union[DiagramKind, str], definition: str = "") -> ViewportSpec:
    """Recommended browser viewport for rendering a diagram.

    Gantt charts are widened when they carry many tasks or span long date
    ranges, so the time axis isn't squeezed.
    """
    try:
        kind = DiagramKind(diagram_type)
    except ValueError:
        return DEFAULT_VIEWPORT

    viewport = VIEWPORTS.get(kind, DEFAULT_VIEWPORT)
    if kind is not DiagramKind.GANTT:
        return viewport

    width = viewport.width
    task_count = _count_gantt_tasks(definition)
    if task_count > GANTT_VERY_MANY_TASKS:
        width = GANTT_EXTRA_WIDE_WIDTH
    elif task_count > GANTT_MANY_TASKS:
        width = GANTT_WIDE_WIDTH

    long_range = "weeks" in definition.lower() or len(_ISO_DATE_RE.findall(definition)) > GANTT_MAX_ISO_DATES
    if long_range:
        width = max(width, GANTT_WIDE_WIDTH)

    return ViewportSpec(width, viewport.height)


def build_mermaid_config(diagram_type: DiagramKind, theme: str, viewport: ViewportSpec) -> dict:
    """Mermaid ``initialize`` options for one diagram."""
    no_max_width = {"useMaxWidth": False}
    config = {
        "startOnLoad": True,
        "theme": "dark" if theme == "dark" else "default",
        "securityLevel": "loose",
        "flowchart": {"useMaxWidth": False, "htmlLabels": True},
        "sequence": dict(no_max_width),
        "class": dict(no_max_width),
        "state": dict(no_max_width),
        "er": dict(no_max_width),
        "journey": dict(no_max_width),
        "pie": dict(no_max_width),
        "gitGraph": dict(no_max_width),
        "timeline": dict(no_max_width),
        "mindmap": dict(no_max_width),
        "quadrantChart": dict(no_max_width),
        "gantt": dict(no_max_width),
    }
    if diagram_type is DiagramKind.GANTT:
        config["gantt"].update({
            "barHeight": 30,
            "barGap": 8,
            "topPadding": 60,
            "leftPadding": 150,
            "rightPadding": 50,
            "gridLineStartPadding": 35,
            "fontSize": 14,
            "sectionFontSize": 14,
            "numberSectionStyles": 4,
            "axisFormat": "%Y-%m-%d",
            "tickInterval": "1week",
            "useWidth": viewport.width - 200,
        })
    return config


def build_render_page(definition: str, diagram_type: DiagramKind, theme: str, viewport: ViewportSpec) -> str:
    """Standalone HTML page that renders one diagram with the Mermaid script."""
    config_json = json.dumps(build_mermaid_config(diagram_type, theme, viewport))
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <script src="{MERMAID_CDN_URL}"></script>
  <style>
    * {{
      margin: 0;
      padding: 0;
      box-sizing: border-box;
    }}
    body {{
      padding: 20px;
      background: transparent;
      width: {viewport.width}px;
    }}
    #container {{
      display: inline-block;
      min-width: {viewport.width - 40}px;
    }}
  </style>
</head>
<body>
  <div id="container">
    <pre class="mermaid">{html.escape(definition)}</pre>
  </div>
  <script>
    mermaid.initialize({config_json});
  </script>
</body>
</html>"""


def process_svg_markup(svg: str, diagram_type: DiagramKind, width: Optional[int] = None, height: Optional[int] = None) -> str:
    """Make rendered SVG self-contained and taggable.

    Inline style and size attributes on the root element are dropped, a
    viewBox is added if missing, explicit width/height are set from the
    measured size, and the root gets the ``mermaid-prerendered`` class plus a
    ``data-diagram-type`` attribute.
    """
    match = _SVG_OPEN_TAG_RE.search(svg)
    if match is None:
        raise ValueError("markup has no <svg> root element")

    open_tag = _SIZE_ATTR_RE.sub("", match.group(0))
    attrs = []
    if width is not None and height is not None:
        if "viewbox" not in open_tag.lower():
            attrs.append(f'viewBox="0 0 {width} {height}"')
        attrs.append(f'width="{width}" height="{height}"')
    attrs.append(f'data-diagram-type="{DiagramKind(diagram_type).value}"')

    class_match = _CLASS_ATTR_RE.search(open_tag)
    if class_match:
        classes = " ".join([PRERENDERED_CLASS] + class_match.group(1).split())
        open_tag = open_tag[:class_match.start()] + f' class="{classes}"' + open_tag[class_match.end():]
    else:
        attrs.insert(0, f'class="{PRERENDERED_CLASS}"')

    open_tag = open_tag[:4] + " " + " ".join(attrs) + open_tag[4:]
    return svg[:match.start()] + open_tag + svg[match.end():]


def _view_box_size(svg: str) -> Optional[Tuple[int, int]]:
    """Width and height from the root element's viewBox, if it has a usable one."""
    match = _SVG_OPEN_TAG_RE.search(svg)
    view_box = _VIEW_BOX_RE.search(match.group(0)) if match else None
    if view_box is None:
        return None
    parts = view_box.group(1).replace(",", " ").split()
    try:
        width, height = float(parts[2]), float(parts[3])
    except (IndexError, ValueError):
        return None
    if width <= 0 or height <= 0:
        return None
    return math.ceil(width), math.ceil(height)


async def render_diagram_to_svg(
    session: BrowserSession,
    definition: str,
    theme: str = "default",
    position: Optional[int] = None,
) -> str:
    """Render one Mermaid definition to an SVG string in a fresh tab.

    Raises DiagramRenderError when no SVG appears or it can't be read back.
    The tab is closed on every exit path.
    """
    diagram_type = detect_diagram_type(definition)
    viewport = get_viewport_for_diagram_type(diagram_type, definition)

    try:
        tab = await session.new_tab(viewport.width, viewport.height, DEVICE_SCALE_FACTOR)
    except Exception as e:
        raise DiagramRenderError(f"Failed to open browser tab: {e}", position, diagram_type.value) from e

    try:
        await tab.load(build_render_page(definition, diagram_type, theme, viewport))

        if not await tab.wait_for_selector(SVG_SELECTOR, SVG_WAIT_TIMEOUT_MS):
            raise DiagramRenderError(f"SVG did not appear within {SVG_WAIT_TIMEOUT_MS}ms", position, diagram_type.value)

        # Additional wait for multi-pass layouts
        await tab.wait(SETTLE_DELAY_MS)

        box = await tab.bounding_box(SVG_SELECTOR)
        svg = await tab.outer_html(SVG_SELECTOR)
        if not svg:
            raise DiagramRenderError("Failed to extract SVG content", position, diagram_type.value)

        if box:
            width, height = math.ceil(box["width"]), math.ceil(box["height"])
        else:
            size = _view_box_size(svg)
            if size is None:
                raise DiagramRenderError("SVG has no measurable size", position, diagram_type.value)
            width, height = size
        return process_svg_markup(svg, diagram_type, width, height)
    except DiagramRenderError:
        raise
    except Exception as e:
        raise DiagramRenderError(str(e), position, diagram_type.value) from e
    finally:
        try:
            await tab.close()
        except Exception:
            pass


def wrap_svg(svg: str) -> str:
    # A blank line would end the raw HTML block in Markdown
    svg = "\n".join(line for line in svg.splitlines() if line.strip())
    return f'<div class="mermaid-container">\n{svg}\n</div>'


def splice_block(markdown: str, block: DiagramBlock, fragment: str) -> str:
    """Replace ``block`` in ``markdown`` with an HTML fragment.

    Every fragment line gets the fence's indentation so the HTML stays inside
    a list item, and a blank line follows so the raw HTML block ends before
    the next Markdown line.
    """
    indent = block.raw_match[:len(block.raw_match) - len(block.raw_match.lstrip(" \t"))]
    replacement = "\n".join(indent + line for line in fragment.split("\n")) + "\n"
    end = block.source_offset + len(block.raw_match)
    return markdown[:block.source_offset] + replacement + markdown[end:]


Renderer = Callable[..., Awaitable[str]]


class MermaidPrerenderer(ConsoleLogMixin):
    """Replaces fenced mermaid blocks with pre-rendered SVG, one document at a time."""

    def __init__(self, backend: Optional[BrowserBackend] = None, renderer: Optional[Renderer] = None,
                 debug: bool = False, show_progress: bool = False):
        self.backend = backend if backend is not None else PlaywrightBackend(debug=debug)
        self.renderer = renderer or render_diagram_to_svg
        self.debug = debug
        self.show_progress = show_progress
        self.failures: List[DiagramRenderError] = []

    async def prerender(self, markdown: str, theme: str = "default") -> str:
        """Return ``markdown`` with every renderable mermaid block replaced by SVG.

        Starting the browser is skipped entirely when there is nothing to
        render. A session start failure propagates (BrowserUnavailableError);
        individual diagram failures are logged and their blocks kept.
        """
        self.failures = []
        blocks = extract_mermaid_blocks(markdown)
        if not blocks:
            return markdown

        self._log_debug(f"Found {len(blocks)} Mermaid diagram(s) to pre-render")
        session = await self.backend.start_session()
        try:
            result = markdown
            # Back to front so earlier offsets stay valid after each splice
            indexed = list(enumerate(blocks, start=1))
            for position, block in tqdm(list(reversed(indexed)), desc="  Mermaid diagrams", unit="diagram",
                                        leave=False, disable=not self.show_progress):
                try:
                    svg = await self.renderer(session, block.definition, theme=theme, position=position)
                except DiagramRenderError as e:
                    self._report_failure(e, position)
                    continue
                except Exception as e:
                    self._report_failure(DiagramRenderError(str(e), position), position)
                    continue

                result = splice_block(result, block, wrap_svg(svg))
                self._log_debug(f"Pre-rendered Mermaid diagram {position}")

            rendered = len(blocks) - len(self.failures)
            self._log_debug(f"Pre-rendered {rendered}/{len(blocks)} Mermaid diagram(s)")
            return result
        finally:
            try:
                await session.close()
            except Exception as e:
                self._log_debug(f"Ignoring error while closing browser session: {e}")

    def _report_failure(self, error: DiagramRenderError, position: int) -> None:
        if error.position is None:
            error.position = position
        self.failures.append(error)
        self._log_warning(f"Failed to pre-render diagram {position}: {error.message}")


async def prerender_mermaid_diagrams(
    markdown: str,
    theme: str = "default",
    backend: Optional[BrowserBackend] = None,
    renderer: Optional[Renderer] = None,
    debug: bool = False,
) -> str:
    """Pre-render all Mermaid diagrams in ``markdown``. See MermaidPrerenderer.prerender."""
    prerenderer = MermaidPrerenderer(backend=backend, renderer=renderer, debug=debug)
    return await prerenderer.prerender(markdown, theme=theme)
