"""
Markdown-to-DOCX conversion with python-docx.

``parse_blocks`` splits cleaned Markdown into typed blocks; ``build_docx``
writes them as a Word document with a cover page, shaded code blocks and a
"Page X of Y" footer.  Only the Markdown subset the prompts ask for is
recognised; anything else is emitted as a plain paragraph.
"""
from __future__ import annotations

import dataclasses
import re
from pathlib import Path
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

HEADING = "heading"
PARAGRAPH = "paragraph"
CODE = "code"
LIST = "list"
QUOTE = "blockquote"

CODE_FONT = "Consolas"
CODE_FILL = "F3F3F3"

_FENCE = re.compile(r"^\s*```\s*([\w+\-#.]*)\s*$")
_HEADING = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_BULLET = re.compile(r"^\s*[-*+]\s+(.*)$")
_NUMBERED = re.compile(r"^\s*\d+[.)]\s+(.*)$")
_QUOTE = re.compile(r"^\s*>\s?(.*)$")
_INLINE = re.compile(r"\*\*(.+?)\*\*|\*(.+?)\*|`(.+?)`")


@dataclasses.dataclass
class Block:
    kind: str
    text: str = ""
    level: int = 0                  # heading level
    language: Optional[str] = None  # code fence info string
    items: List[str] = dataclasses.field(default_factory=list)
    ordered: bool = False


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_blocks(text: str) -> List[Block]:
    lines = text.replace("\r\n", "\n").split("\n")
    blocks: List[Block] = []
    paragraph: List[str] = []

    def flush_paragraph() -> None:
        if paragraph:
            blocks.append(Block(kind=PARAGRAPH, text=" ".join(p.strip() for p in paragraph)))
            paragraph.clear()

    i = 0
    while i < len(lines):
        line = lines[i]

        fence = _FENCE.match(line)
        if fence:
            flush_paragraph()
            code_lines: List[str] = []
            i += 1
            # An unclosed fence runs to the end of the text.
            while i < len(lines) and not _FENCE.match(lines[i]):
                code_lines.append(lines[i])
                i += 1
            i += 1
            blocks.append(
                Block(kind=CODE, text="\n".join(code_lines), language=fence.group(1) or None)
            )
            continue

        if not line.strip():
            flush_paragraph()
            i += 1
            continue

        heading = _HEADING.match(line)
        if heading:
            flush_paragraph()
            blocks.append(
                Block(kind=HEADING, text=heading.group(2), level=len(heading.group(1)))
            )
            i += 1
            continue

        if _BULLET.match(line) or _NUMBERED.match(line):
            flush_paragraph()
            ordered = _NUMBERED.match(line) is not None
            pattern = _NUMBERED if ordered else _BULLET
            items: List[str] = []
            while i < len(lines):
                m = pattern.match(lines[i])
                if not m:
                    break
                items.append(m.group(1).strip())
                i += 1
            blocks.append(Block(kind=LIST, items=items, ordered=ordered))
            continue

        if _QUOTE.match(line):
            flush_paragraph()
            quoted: List[str] = []
            while i < len(lines):
                m = _QUOTE.match(lines[i])
                if not m:
                    break
                quoted.append(m.group(1).strip())
                i += 1
            blocks.append(Block(kind=QUOTE, text=" ".join(q for q in quoted if q)))
            continue

        paragraph.append(line)
        i += 1

    flush_paragraph()
    return blocks


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def add_inline_runs(paragraph, text: str) -> None:
    """Add runs for ``**bold**``, ``*italic*`` and ```code``` spans; the rest stays literal."""
    pos = 0
    for m in _INLINE.finditer(text):
        if m.start() > pos:
            paragraph.add_run(text[pos:m.start()])
        bold, italic, code = m.groups()
        if bold is not None:
            paragraph.add_run(bold).bold = True
        elif italic is not None:
            paragraph.add_run(italic).italic = True
        else:
            run = paragraph.add_run(code)
            run.font.name = CODE_FONT
        pos = m.end()
    if pos < len(text):
        paragraph.add_run(text[pos:])


def _shade(paragraph, fill: str) -> None:
    p_pr = paragraph._p.get_or_add_pPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    p_pr.append(shd)


def _add_field(run, instruction: str) -> None:
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = f" {instruction} "
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    run._r.append(begin)
    run._r.append(instr)
    run._r.append(end)


def _add_page_footer(document) -> None:
    for section in document.sections:
        footer = section.footer
        p = footer.paragraphs[0] if footer.paragraphs else footer.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.add_run("Page ")
        _add_field(p.add_run(), "PAGE")
        p.add_run(" of ")
        _add_field(p.add_run(), "NUMPAGES")
        for run in p.runs:
            run.font.size = Pt(9)
            run.font.color.rgb = RGBColor(0x55, 0x55, 0x55)


def _add_cover(document, title: str) -> None:
    heading = document.add_paragraph()
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = heading.add_run(title)
    run.bold = True
    run.font.size = Pt(26)

    sub = document.add_paragraph()
    sub.alignment = WD_ALIGN_PARAGRAPH.CENTER
    sub.add_run("Generated by Bookgen.ai").italic = True

    caution = document.add_paragraph()
    caution.alignment = WD_ALIGN_PARAGRAPH.CENTER
    caution_run = caution.add_run("AI can make mistakes. Check important information.")
    caution_run.font.size = Pt(9)
    caution_run.font.color.rgb = RGBColor(0x88, 0x88, 0x88)

    document.add_page_break()


def _add_code(document, block: Block) -> None:
    p = document.add_paragraph()
    p.paragraph_format.left_indent = Inches(0.2)
    _shade(p, CODE_FILL)
    code_lines = block.text.split("\n")
    run = p.add_run(code_lines[0] if code_lines else "")
    for line in code_lines[1:]:
        run.add_break()
        run = p.add_run(line)
    for r in p.runs:
        r.font.name = CODE_FONT
        r.font.size = Pt(9.5)


def build_docx(text: str, output_path: Path, title: str) -> Path:
    """Write *text* (cleaned Markdown) to *output_path* as a DOCX document."""
    document = Document()
    _add_cover(document, title)

    for block in parse_blocks(text):
        if block.kind == HEADING:
            document.add_heading(block.text, level=min(block.level, 9))
        elif block.kind == CODE:
            _add_code(document, block)
        elif block.kind == LIST:
            style = "List Number" if block.ordered else "List Bullet"
            for item in block.items:
                add_inline_runs(document.add_paragraph(style=style), item)
        elif block.kind == QUOTE:
            p = document.add_paragraph()
            p.paragraph_format.left_indent = Inches(0.4)
            add_inline_runs(p, block.text)
            for r in p.runs:
                r.italic = True
        else:
            p = document.add_paragraph()
            p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
            add_inline_runs(p, block.text)

    _add_page_footer(document)
    document.save(str(output_path))
    return output_path
