"""
Client-side exports: plain text and a paginated PDF.

Both are produced in memory and handed to the browser as downloads; nothing
is sent back to the API.
"""
from __future__ import annotations

import datetime
import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from handwriting_utils import utils

logger = utils.setup_logging()

TEXT_FILENAME = "extracted-text.txt"
PDF_FILENAME = "extracted-text.pdf"

PDF_FONT_ENV = "PDF_FONT_PATH"
BODY_FONT = "Times-Roman"
CUSTOM_FONT_NAME = "ExportBody"

MARGIN_LEFT = 64
MARGIN_RIGHT = 64
MARGIN_TOP = 96
MARGIN_BOTTOM = 96

BODY_SIZE = 12
LINE_HEIGHT_FACTOR = 1.6
PARAGRAPH_SPACING = 20

TITLE = "Extracted Handwritten Text"
FOOTER = "Generated by AI Handwritten Reader"

_PARAGRAPH_BREAK = re.compile(r"\n(?:[ \t]*\n)+")


@dataclass
class PlacedParagraph:
    lines: List[str]
    top: float  # baseline of the first line, measured from the top edge


def text_export(text: str) -> bytes:
    return text.encode("utf-8")


def split_paragraphs(text: str) -> List[str]:
    """Paragraphs are separated by one or more blank lines."""
    text = text.replace("\r\n", "\n")
    return [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def resolve_body_font() -> str:
    """
    Use the TTF from PDF_FONT_PATH when it can be registered (needed for
    Devanagari), otherwise the built-in Times-Roman.
    """
    font_path = utils.get_env(PDF_FONT_ENV)
    if not font_path:
        return BODY_FONT

    path = Path(font_path).expanduser()
    if not path.exists():
        logger.warning("PDF font %s not found, using %s", path, BODY_FONT)
        return BODY_FONT

    if CUSTOM_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(CUSTOM_FONT_NAME, str(path)))
        except Exception as e:
            logger.warning("Cannot register PDF font %s: %s", path, e)
            return BODY_FONT
    return CUSTOM_FONT_NAME


def layout_pages(text: str, font_name: str = BODY_FONT, page_size=A4) -> List[List[PlacedParagraph]]:
    """
    Wrap each paragraph to the content width and assign it to a page.
    A paragraph that does not fit in the space left on the page starts a new
    one. Paragraphs are never split across pages.
    """
    width, height = page_size
    content_width = width - MARGIN_LEFT - MARGIN_RIGHT
    line_height = BODY_SIZE * LINE_HEIGHT_FACTOR
    paragraphs = split_paragraphs(text)

    pages: List[List[PlacedParagraph]] = [[]]
    cursor = MARGIN_TOP
    for index, paragraph in enumerate(paragraphs):
        lines = simpleSplit(paragraph, font_name, BODY_SIZE, content_width)
        required = len(lines) * line_height

        # a paragraph taller than a whole page stays on the page it starts on
        if cursor + required > height - MARGIN_BOTTOM and pages[-1]:
            pages.append([])
            cursor = MARGIN_TOP

        pages[-1].append(PlacedParagraph(lines=lines, top=cursor))
        cursor += required + (PARAGRAPH_SPACING if index < len(paragraphs) - 1 else 0)

    return pages


def _draw_header(c: canvas.Canvas, width: float, height: float, generated_at: datetime.datetime):
    c.setFont("Helvetica-Bold", 20)
    c.setFillColorRGB(0, 0, 0)
    c.drawCentredString(width / 2, height - (MARGIN_TOP - 28), TITLE)

    c.setFont("Helvetica", 11)
    c.setFillColorRGB(90 / 255, 99 / 255, 120 / 255)
    stamp = generated_at.strftime("%B %d, %Y %I:%M %p")
    c.drawCentredString(width / 2, height - (MARGIN_TOP - 4), f"Generated on {stamp}")


def _draw_footer(c: canvas.Canvas, width: float):
    c.setFont("Helvetica-Oblique", 10)
    c.setFillColorRGB(140 / 255, 148 / 255, 170 / 255)
    c.drawCentredString(width / 2, 40, FOOTER)


def pdf_export(text: str, generated_at: Optional[datetime.datetime] = None, page_size=A4) -> bytes:
    """Render the transcription as an A4 PDF and return its bytes."""
    generated_at = generated_at or datetime.datetime.now()
    font_name = resolve_body_font()
    width, height = page_size
    line_height = BODY_SIZE * LINE_HEIGHT_FACTOR

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=page_size)
    c.setTitle(TITLE)

    pages = layout_pages(text, font_name=font_name, page_size=page_size)
    for page_number, page in enumerate(pages):
        if page_number == 0:
            _draw_header(c, width, height, generated_at)

        c.setFont(font_name, BODY_SIZE)
        c.setFillColorRGB(25 / 255, 29 / 255, 39 / 255)
        for paragraph in page:
            for i, line in enumerate(paragraph.lines):
                c.drawString(MARGIN_LEFT, height - (paragraph.top + i * line_height), line)

        if page_number == len(pages) - 1:
            _draw_footer(c, width)
        c.showPage()

    c.save()
    logger.info(f"Built PDF export: {len(pages)} page(s)")
    return buf.getvalue()
