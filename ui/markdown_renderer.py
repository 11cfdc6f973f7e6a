# ui/markdown_renderer.py
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from markdown import markdown


@dataclass(frozen=True)
class MarkdownTheme:
    text: str = "#111827"
    muted: str = "#6B7280"
    border: str = "#E5E7EB"
    panel: str = "#FFFFFF"
    link: str = "#2563EB"


DARK_THEME = MarkdownTheme(
    text="#F9FAFB",
    muted="#9CA3AF",
    border="#374151",
    panel="#111827",
    link="#60A5FA",
)


class MarkdownRenderer:
    """
    Timer set descriptions -> HTML for tkinterweb.
    tkhtml renders a limited HTML subset, so only plain extensions are used.
    """

    def __init__(self, theme: Optional[MarkdownTheme] = None):
        self.theme = theme or MarkdownTheme()

    def extensions(self) -> List[str]:
        return ["extra", "sane_lists", "nl2br"]

    def css(self) -> str:
        t = self.theme
        return f"""
        body {{
          font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Arial, sans-serif;
          margin: 10px;
          color: {t.text};
          background: {t.panel};
          font-size: 13px;
          line-height: 1.5;
        }}
        p {{ margin: 0.4em 0; }}
        a {{ color: {t.link}; text-decoration: none; }}
        ul, ol {{ padding-left: 1.2em; margin: 0.4em 0; }}
        hr {{ border: 0; border-top: 1px solid {t.border}; }}
        em {{ color: {t.muted}; }}
        """

    def to_html(self, md_text: str) -> str:
        body = markdown(
            md_text or "",
            extensions=self.extensions(),
            output_format="html5",
        )
        return f"""
        <html>
          <head>
            <meta charset="utf-8"/>
            <style>{self.css()}</style>
          </head>
          <body>{body}</body>
        </html>
        """
