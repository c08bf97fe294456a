"""Tests for the HTML document template and stylesheet."""

from pdfmaid.config import COMPACT_MAX, COMPACT_MIN
from pdfmaid.template import get_html_template, get_styles


class TestGetStyles:
    def test_light_and_dark_backgrounds(self):
        assert "--color-bg: #ffffff" in get_styles("default")
        assert "--color-bg: #0f172a" in get_styles("dark")

    def test_default_compact_level(self):
        styles = get_styles()
        assert "font-size: 11pt" in styles
        assert "margin: 2cm" in styles
        assert "line-height: 1.60" in styles

    def test_most_compact(self):
        styles = get_styles(compact_level=-5)
        assert "font-size: 10pt" in styles
        assert "margin: 1.5cm" in styles
        assert "line-height: 1.30" in styles

    def test_most_spacious(self):
        styles = get_styles(compact_level=5)
        assert "font-size: 12pt" in styles
        assert "margin: 2.5cm" in styles

    def test_level_is_clamped(self):
        assert get_styles(compact_level=42) == get_styles(compact_level=5)
        assert get_styles(compact_level=-42) == get_styles(compact_level=-5)

    def test_clamps_to_configured_range(self):
        assert get_styles(compact_level=COMPACT_MAX + 1) == get_styles(compact_level=COMPACT_MAX)
        assert get_styles(compact_level=COMPACT_MIN - 1) == get_styles(compact_level=COMPACT_MIN)
        assert get_styles(compact_level=COMPACT_MAX - 1) != get_styles(compact_level=COMPACT_MAX)

    def test_prerendered_diagram_rules(self):
        styles = get_styles()
        assert ".mermaid-container svg.mermaid-prerendered" in styles
        assert '[data-diagram-type="gantt"]' in styles
        assert '[data-diagram-type="gitgraph"]' in styles


class TestGetHtmlTemplate:
    def test_wraps_content(self):
        html = get_html_template("<p>Hello</p>")
        assert html.startswith("<!DOCTYPE html>")
        assert "<article>\n    <p>Hello</p>\n  </article>" in html
        assert "<title>Document</title>" in html

    def test_title_is_escaped(self):
        assert "<title>A &amp; B &lt;draft&gt;</title>" in get_html_template("", title="A & B <draft>")

    def test_mermaid_script_follows_theme(self):
        assert "theme: 'dark'" in get_html_template("", theme="dark")
        assert "theme: 'default'" in get_html_template("", theme="default")
        assert "securityLevel: 'loose'" in get_html_template("")
        assert "mermaid@10.6.1" in get_html_template("")

    def test_unknown_theme_falls_back_to_default_mermaid_theme(self):
        assert "theme: 'default'" in get_html_template("", theme="sepia")

    def test_styles_optional(self):
        assert "<style>" in get_html_template("")
        assert "<style>" not in get_html_template("", include_styles=False)

    def test_print_button_optional(self):
        assert 'class="print-button"' in get_html_template("")
        assert 'class="print-button"' not in get_html_template("", include_print_button=False)

    def test_compact_level_reaches_styles(self):
        assert "margin: 1.5cm" in get_html_template("", compact_level=-5)
