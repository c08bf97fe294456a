"""
HTML document template and stylesheet.

MIT License - Copyright (c) 2025 PDFMaid
"""

import html

from .config import COMPACT_MAX, COMPACT_MIN
from .mermaid_prerenderer import MERMAID_CDN_URL


def get_styles(theme: str = "default", compact_level: int = 0) -> str:
    """Return the document ``<style>`` block.

    ``compact_level`` runs from -5 (most compact) to 5 (most spacious) and is
    clamped to that range. Spacing, line height, print font size and page
    margin scale linearly with it.
    """
    is_dark = theme == "dark"
    level = max(COMPACT_MIN, min(COMPACT_MAX, int(compact_level)))

    spacing = 1 + level * 0.15           # [0.25, 1.75]
    line_height = 1.6 + level * 0.06     # [1.3, 1.9]
    print_font_size = f"{11 + level * 0.2:g}pt"
    page_margin = f"{2 + level * 0.1:g}cm"

    def s(factor: float) -> str:
        return f"{factor * spacing:.3g}rem"

    def c(dark: str, light: str) -> str:
        return dark if is_dark else light

    return f"""<style>
    :root {{
      --color-primary: {c('#60a5fa', '#2563eb')};
      --color-secondary: {c('#94a3b8', '#64748b')};
      --color-success: {c('#34d399', '#10b981')};
      --color-warning: {c('#fbbf24', '#f59e0b')};
      --color-danger: {c('#f87171', '#ef4444')};
      --color-bg: {c('#0f172a', '#ffffff')};
      --color-bg-alt: {c('#1e293b', '#f8fafc')};
      --color-border: {c('#334155', '#e2e8f0')};
      --color-text: {c('#f1f5f9', '#1e293b')};
      --color-text-muted: {c('#94a3b8', '#64748b')};
    }}

    @media print {{
      body {{
        font-size: {print_font_size};
        line-height: {line_height - 0.2:.2f};
      }}

      h1 {{
        page-break-before: always;
      }}

      h1:first-of-type {{
        page-break-before: avoid;
      }}

      h2, h3, h4, h5, h6 {{
        page-break-after: avoid;
      }}

      pre, blockquote, table, .mermaid {{
        page-break-inside: avoid;
      }}

      @page {{
        margin: {page_margin};
        size: A4;
      }}

      .print-button, .copy-button {{
        display: none;
      }}
    }}

    * {{
      margin: 0;
      padding: 0;
      box-sizing: border-box;
    }}

    body {{
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', 'Helvetica Neue', Arial, sans-serif;
      line-height: {line_height:.2f};
      color: var(--color-text);
      background: var(--color-bg);
      padding: {s(2)};
      max-width: 1200px;
      margin: 0 auto;
    }}

    h1, h2, h3, h4, h5, h6 {{
      font-weight: 700;
      line-height: 1.3;
      margin-top: {s(2)};
      margin-bottom: {s(1)};
      color: var(--color-text);
    }}

    h1 {{
      font-size: 2.5rem;
      border-bottom: 3px solid var(--color-primary);
      padding-bottom: {s(0.5)};
      margin-top: 0;
    }}

    h2 {{
      font-size: 2rem;
      border-bottom: 2px solid var(--color-border);
      padding-bottom: {s(0.3)};
    }}

    h3 {{
      font-size: 1.5rem;
      color: var(--color-primary);
    }}

    h4 {{ font-size: 1.25rem; }}
    h5 {{ font-size: 1.1rem; }}

    p {{
      margin-bottom: {s(1)};
    }}

    a {{
      color: var(--color-primary);
      text-decoration: none;
    }}

    a:hover {{
      text-decoration: underline;
    }}

    code {{
      background: var(--color-bg-alt);
      padding: 0.2em 0.4em;
      border-radius: 3px;
      font-family: 'Courier New', Courier, monospace;
      font-size: 0.9em;
      color: var(--color-danger);
    }}

    pre {{
      background: var(--color-bg-alt);
      border: 1px solid var(--color-border);
      border-radius: 6px;
      padding: {s(1)};
      overflow-x: auto;
      margin-bottom: {s(1)};
    }}

    pre code {{
      background: transparent;
      padding: 0;
      color: var(--color-text);
      font-size: 0.875rem;
    }}

    ul, ol {{
      margin-bottom: {s(1)};
      padding-left: {s(2)};
    }}

    li {{
      margin-bottom: {s(0.5)};
    }}

    blockquote {{
      border-left: 4px solid var(--color-primary);
      padding-left: {s(1)};
      margin: {s(1)} 0;
      color: var(--color-text-muted);
      font-style: italic;
    }}

    table {{
      width: 100%;
      border-collapse: collapse;
      margin-bottom: {s(1)};
      font-size: 0.9rem;
    }}

    th, td {{
      border: 1px solid var(--color-border);
      padding: {s(0.75)};
      text-align: left;
    }}

    th {{
      background: var(--color-bg-alt);
      font-weight: 600;
    }}

    tr:nth-child(even) {{
      background: var(--color-bg-alt);
    }}

    hr {{
      border: none;
      border-top: 2px solid var(--color-border);
      margin: {s(2)} 0;
    }}

    /* Diagrams rendered client-side */
    .mermaid {{
      background: var(--color-bg);
      border: 1px solid var(--color-border);
      border-radius: 8px;
      padding: {s(2)} {s(1)};
      margin: {s(2)} 0;
      display: flex;
      justify-content: center;
      overflow-x: auto;
    }}

    /* Pre-rendered Mermaid diagrams (SVG) */
    .mermaid-container {{
      background: var(--color-bg);
      border: 1px solid var(--color-border);
      border-radius: 8px;
      padding: {s(1.5)};
      margin: {s(2)} 0;
      overflow-x: auto;
      text-align: center;
    }}

    .mermaid-container svg.mermaid-prerendered {{
      max-width: 100%;
      height: auto;
      display: inline-block;
    }}

    /* Wide diagrams keep their natural width */
    .mermaid-container svg.mermaid-prerendered[data-diagram-type="gantt"],
    .mermaid-container svg.mermaid-prerendered[data-diagram-type="timeline"],
    .mermaid-container svg.mermaid-prerendered[data-diagram-type="gitgraph"] {{
      max-width: none;
      width: auto;
    }}

    @media print {{
      .mermaid-container {{
        page-break-inside: avoid;
        overflow: visible;
      }}

      .mermaid-container svg.mermaid-prerendered[data-diagram-type="gantt"],
      .mermaid-container svg.mermaid-prerendered[data-diagram-type="timeline"] {{
        max-width: none;
        width: auto;
        transform-origin: left top;
      }}
    }}

    p strong {{
      color: var(--color-primary);
    }}

    nav ol {{
      list-style-position: inside;
    }}

    .print-button {{
      position: fixed;
      top: 20px;
      right: 20px;
      background: var(--color-primary);
      color: white;
      border: none;
      padding: 0.75rem 1.5rem;
      border-radius: 6px;
      cursor: pointer;
      font-weight: 600;
      box-shadow: 0 4px 6px rgba(0, 0, 0, 0.1);
      z-index: 1000;
    }}

    .print-button:hover, .copy-button:hover {{
      background: {c('#3b82f6', '#1d4ed8')};
    }}

    .copy-button {{
      position: absolute;
      top: 5px;
      right: 5px;
      padding: 5px 10px;
      font-size: 12px;
      cursor: pointer;
      background: var(--color-primary);
      color: white;
      border: none;
      border-radius: 4px;
      opacity: 0;
      transition: opacity 0.2s;
    }}

    pre:hover .copy-button {{
      opacity: 1;
    }}
  </style>"""


def get_html_template(content: str, title: str = "Document", theme: str = "default",
                      include_styles: bool = True, include_print_button: bool = True,
                      compact_level: int = 0) -> str:
    """Wrap an HTML fragment in a full, styled document.

    The Mermaid script is always loaded so that diagrams which were not
    pre-rendered still render in the browser.
    """
    mermaid_theme = "dark" if theme == "dark" else "default"
    styles = get_styles(theme, compact_level) if include_styles else ""
    print_button = (
        '<button class="print-button" onclick="window.print()">🖨️ Print / Save as PDF</button>'
        if include_print_button else ""
    )

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{html.escape(title)}</title>
  <script src="{MERMAID_CDN_URL}"></script>
  <script>
    mermaid.initialize({{
      startOnLoad: true,
      theme: '{mermaid_theme}',
      securityLevel: 'loose',
      flowchart: {{
        useMaxWidth: true,
        htmlLabels: true,
        curve: 'basis'
      }}
    }});
  </script>
  {styles}
</head>
<body>
  {print_button}
  <article>
    {content}
  </article>
  <script>
    document.querySelectorAll('a[href^="#"]').forEach(anchor => {{
      anchor.addEventListener('click', function (e) {{
        e.preventDefault();
        const target = document.querySelector(this.getAttribute('href'));
        if (target) {{
          target.scrollIntoView({{ behavior: 'smooth' }});
        }}
      }});
    }});

    document.querySelectorAll('pre code').forEach((block) => {{
      if (block.parentElement.classList.contains('mermaid')) {{
        return;
      }}
      const button = document.createElement('button');
      button.textContent = 'Copy';
      button.className = 'copy-button';
      button.addEventListener('click', () => {{
        navigator.clipboard.writeText(block.textContent);
        button.textContent = 'Copied!';
        setTimeout(() => button.textContent = 'Copy', 2000);
      }});
      block.parentElement.style.position = 'relative';
      block.parentElement.appendChild(button);
    }});
  </script>
</body>
</html>"""
