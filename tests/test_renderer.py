"""Tests for Markdown block parsing, DOCX output and the PDF path."""
import pytest
from docx import Document
from playwright.async_api import Error as PlaywrightError

from app.models.database_models import DocumentFormat
from app.services import renderer as renderer_module
from app.services.docx_builder import CODE, HEADING, LIST, PARAGRAPH, QUOTE, parse_blocks
from app.services.errors import RenderError
from app.services.renderer import Renderer, build_html

SAMPLE = """\
## Chapter 1: Cats

Cats are **curious** and *playful*.
They like `boxes`.

- whiskers
- tails

1. sleep
2. eat

> A cat is a lion in a jungle of small bushes.

```python
def purr(times):
    for _ in range(times):
        print("purr")
```
"""


# ---------------------------------------------------------------------------
# Block parsing
# ---------------------------------------------------------------------------

def test_parse_blocks_kinds():
    blocks = parse_blocks(SAMPLE)
    assert [b.kind for b in blocks] == [HEADING, PARAGRAPH, LIST, LIST, QUOTE, CODE]

    heading, para, bullets, numbers, quote, code = blocks
    assert heading.level == 2 and heading.text == "Chapter 1: Cats"
    assert para.text == "Cats are **curious** and *playful*. They like `boxes`."
    assert bullets.items == ["whiskers", "tails"] and not bullets.ordered
    assert numbers.items == ["sleep", "eat"] and numbers.ordered
    assert quote.text.startswith("A cat is a lion")
    assert code.language == "python"
    assert code.text.splitlines()[0] == "def purr(times):"


def test_unclosed_fence_runs_to_end():
    blocks = parse_blocks("Intro\n\n```\nline 1\nline 2")
    assert blocks[-1].kind == CODE
    assert blocks[-1].text == "line 1\nline 2"


# ---------------------------------------------------------------------------
# DOCX
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_docx_preserves_code_block_text(tmp_path):
    code = 'def purr(times):\n    for _ in range(times):\n        print("purr")'
    out = tmp_path / "doc.docx"

    await Renderer().render(SAMPLE, out, DocumentFormat.DOCX, title="Cats")

    doc = Document(str(out))
    texts = [p.text for p in doc.paragraphs]
    assert code in texts
    assert "Cats" in texts


@pytest.mark.asyncio
async def test_docx_inline_formatting_and_lists(tmp_path):
    out = tmp_path / "doc.docx"
    await Renderer().render(SAMPLE, out, DocumentFormat.DOCX, title="Cats")

    doc = Document(str(out))
    paragraph = next(p for p in doc.paragraphs if p.text.startswith("Cats are"))
    bold = [r.text for r in paragraph.runs if r.bold]
    italic = [r.text for r in paragraph.runs if r.italic]
    assert bold == ["curious"]
    assert italic == ["playful"]
    assert paragraph.text == "Cats are curious and playful. They like boxes."

    styles = {p.text: p.style.name for p in doc.paragraphs}
    assert styles["whiskers"] == "List Bullet"
    assert styles["sleep"] == "List Number"
    assert styles["Chapter 1: Cats"] == "Heading 2"


@pytest.mark.asyncio
async def test_docx_unmatched_markup_stays_literal(tmp_path):
    out = tmp_path / "doc.docx"
    await Renderer().render("Use snake_case, a lone * star and a stray ` tick", out, DocumentFormat.DOCX, title="T")

    doc = Document(str(out))
    assert "Use snake_case, a lone * star and a stray ` tick" in [p.text for p in doc.paragraphs]


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

def test_build_html_template():
    page = build_html(SAMPLE, title="Cats & Dogs")
    assert "Cats &amp; Dogs" in page
    assert "Generated by Bookgen.ai" in page
    assert "AI can make mistakes" in page
    assert "page-break-after: always" in page
    assert 'class="highlight"' in page
    assert "<table" not in page
    assert "<li>whiskers</li>" in page


@pytest.mark.asyncio
async def test_pdf_render_prints_cleaned_html(tmp_path, monkeypatch):
    captured = {}

    async def fake_print(self, page_html, output_path):
        captured["html"] = page_html
        output_path.write_bytes(b"%PDF-1.4 fake")

    monkeypatch.setattr(Renderer, "_print_pdf", fake_print)
    out = tmp_path / "nested" / "doc.pdf"

    await Renderer().render("Intro — text\n\n=========\n\nMore", out, DocumentFormat.PDF, title="T")

    assert out.read_bytes().startswith(b"%PDF")
    assert "Intro - text" in captured["html"]
    assert "=========" not in captured["html"]


@pytest.mark.asyncio
async def test_browser_failure_raises_render_error(tmp_path, monkeypatch):
    class BrokenPlaywright:
        async def __aenter__(self):
            raise PlaywrightError("Executable doesn't exist")

        async def __aexit__(self, *exc):
            return False

    monkeypatch.setattr(renderer_module, "async_playwright", lambda: BrokenPlaywright())

    with pytest.raises(RenderError, match="PDF generation failed"):
        await Renderer().render("Body", tmp_path / "doc.pdf", DocumentFormat.PDF, title="T")
    assert not (tmp_path / "doc.pdf").exists()


@pytest.mark.asyncio
async def test_missing_output_raises_render_error(tmp_path, monkeypatch):
    async def no_output(self, page_html, output_path):
        return None

    monkeypatch.setattr(Renderer, "_print_pdf", no_output)
    with pytest.raises(RenderError):
        await Renderer().render("Body", tmp_path / "doc.pdf", DocumentFormat.PDF, title="T")


@pytest.mark.asyncio
async def test_any_docx_builder_failure_raises_render_error(tmp_path, monkeypatch):
    def broken_build(text, output_path, title):
        raise TypeError("unexpected style object")

    monkeypatch.setattr(renderer_module, "build_docx", broken_build)
    with pytest.raises(RenderError, match="unexpected style object"):
        await Renderer().render("Body", tmp_path / "doc.docx", DocumentFormat.DOCX, title="T")
