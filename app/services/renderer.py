"""
Renderer: combined Markdown text to a PDF or DOCX file.

PDF output goes through Python-Markdown + Pygments into a fixed HTML
template, which headless Chromium (Playwright) prints to A4.  DOCX output is
written directly with python-docx (see ``docx_builder``).  Every engine
failure surfaces as ``RenderError``; there is no fallback format.
"""
from __future__ import annotations

import asyncio
import html
import logging
from datetime import date
from pathlib import Path
from typing import Optional

import markdown
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from pygments.formatters import HtmlFormatter

from app.config import settings
from app.models.database_models import DocumentFormat
from app.services.docx_builder import build_docx
from app.services.errors import RenderError
from app.utils.helpers import clean_generated_text

logger = logging.getLogger(__name__)

MARKDOWN_EXTENSIONS = ["fenced_code", "codehilite", "tables", "sane_lists"]
MARKDOWN_EXTENSION_CONFIGS = {
    "codehilite": {"css_class": "highlight", "guess_lang": False},
}

PDF_MARGINS = {"top": "80px", "bottom": "80px", "left": "60px", "right": "60px"}
PDF_HEADER_TEMPLATE = (
    '<div style="font-size: 9px; text-align: center; width: 100%; color: #6b7280;">'
    "Generated by bookgen.ai</div>"
)
PDF_FOOTER_TEMPLATE = (
    '<div style="font-size: 9px; text-align: center; width: 100%; color: #6b7280;">'
    'Page <span class="pageNumber"></span> of <span class="totalPages"></span></div>'
)

_BASE_CSS = """
@page { size: A4; }
body { font-family: Georgia, 'Times New Roman', serif; font-size: 14px;
       line-height: 1.7; color: #1f2937; text-align: justify; }
.cover-page { display: flex; flex-direction: column; justify-content: center;
              align-items: center; height: 90vh; text-align: center;
              page-break-after: always; }
.cover-title { font-family: Helvetica, Arial, sans-serif; font-size: 40px;
               font-weight: 700; margin-bottom: 0.4em; }
.cover-meta { font-size: 14px; color: #4b5563; }
.cover-caution { margin-top: 30px; font-size: 12px; color: #b91c1c; font-style: italic; }
h1, h2, h3, h4 { font-family: Helvetica, Arial, sans-serif; color: #111827;
                 margin-top: 1.8em; margin-bottom: 0.6em; text-align: left; }
h2 { border-bottom: 2px solid #667eea; padding-bottom: 6px; }
code { font-family: 'Courier New', monospace; font-size: 12px;
       background: #f3f4f6; padding: 1px 4px; border-radius: 3px; }
.highlight { border: 1px solid #e5e7eb; border-radius: 6px; padding: 10px 14px;
             margin: 1.2em 0; page-break-inside: avoid; }
.highlight pre { margin: 0; white-space: pre-wrap; word-wrap: break-word; }
.highlight code { background: none; padding: 0; }
blockquote { border-left: 4px solid #667eea; margin: 1.5em 0; padding: 0.5em 1.2em;
             background: #f9fafb; font-style: italic; }
table { width: 100%; border-collapse: collapse; margin: 1.5em 0; }
th, td { border: 1px solid #d1d5db; padding: 8px; text-align: left; }
th { background: #374151; color: white; }
"""

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>{base_css}
{pygments_css}</style>
</head>
<body>
<div class="cover-page">
  <div class="cover-title">{title}</div>
  <div class="cover-meta">Generated by Bookgen.ai<br>{generated_on}</div>
  <div class="cover-caution">AI can make mistakes. Check important information.</div>
</div>
<div class="content">
{body}
</div>
</body>
</html>
"""


def markdown_to_html(text: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
    )
    return md.convert(text)


def build_html(text: str, title: str) -> str:
    """Full HTML page for *text* (already cleaned Markdown)."""
    return _HTML_TEMPLATE.format(
        title=html.escape(title),
        base_css=_BASE_CSS,
        pygments_css=HtmlFormatter(style="default").get_style_defs(".highlight"),
        generated_on=date.today().strftime("%B %d, %Y"),
        body=markdown_to_html(text),
    )


class Renderer:
    def __init__(self, browser_executable: Optional[str] = None) -> None:
        self.browser_executable = browser_executable or settings.BROWSER_EXECUTABLE

    async def render(
        self,
        combined_text: str,
        output_path: Path,
        fmt: DocumentFormat,
        title: str,
    ) -> Path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        text = clean_generated_text(combined_text)

        logger.info("Rendering %s → %s", fmt.value, output_path)
        if fmt == DocumentFormat.DOCX:
            try:
                await asyncio.to_thread(build_docx, text, output_path, title)
            except Exception as exc:
                raise RenderError(f"DOCX generation failed: {exc}") from exc
        else:
            await self._print_pdf(build_html(text, title), output_path)

        if not output_path.exists():
            raise RenderError(f"Renderer produced no file at {output_path}")
        return output_path

    async def _print_pdf(self, page_html: str, output_path: Path) -> None:
        launch_kwargs = {"args": ["--no-sandbox", "--disable-setuid-sandbox"]}
        if self.browser_executable:
            launch_kwargs["executable_path"] = self.browser_executable

        try:
            async with async_playwright() as pw:
                browser = await pw.chromium.launch(**launch_kwargs)
                try:
                    page = await browser.new_page()
                    await page.set_content(page_html, wait_until="networkidle")
                    await page.pdf(
                        path=str(output_path),
                        format="A4",
                        print_background=True,
                        display_header_footer=True,
                        header_template=PDF_HEADER_TEMPLATE,
                        footer_template=PDF_FOOTER_TEMPLATE,
                        margin=PDF_MARGINS,
                    )
                finally:
                    await browser.close()
        except PlaywrightError as exc:
            logger.error("PDF rendering failed: %s", exc)
            raise RenderError(f"PDF generation failed: {exc}") from exc
