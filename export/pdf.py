"""PDF export rendered with ReportLab.

Layout: title page (with the cover image when there is one), then the
manuscript with Markdown headings, fenced code, and chapter separators
turned into page breaks.
"""

import io
import logging
import re

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Image, PageBreak, Paragraph, Preformatted, SimpleDocTemplate, Spacer

from models.library import LibraryEntry
from tools.text_utils import decode_data_uri

logger = logging.getLogger(__name__)

MIME_TYPE = "application/pdf"

_CJK_RE = re.compile(r"[぀-ヿ㐀-鿿가-힯＀-￯]")
_CJK_FONT = "STSong-Light"
_SEPARATOR_RE = re.compile(r"^-{3,}$")


def _escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _styles(font: str | None) -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    extra = {"fontName": font} if font else {}
    return {
        "title": ParagraphStyle("BookTitle", parent=base["Title"], **extra),
        "h1": ParagraphStyle("BookH1", parent=base["Heading1"], spaceAfter=12, **extra),
        "h2": ParagraphStyle("BookH2", parent=base["Heading2"], spaceAfter=10, **extra),
        "h3": ParagraphStyle("BookH3", parent=base["Heading3"], spaceAfter=8, **extra),
        "body": ParagraphStyle(
            "BookBody", parent=base["BodyText"], leading=16, spaceAfter=8,
            wordWrap="CJK" if font else None, **extra,
        ),
        "code": ParagraphStyle("BookCode", parent=base["Code"], fontSize=8, leading=10),
    }


def _cover_flowable(cover: str, max_width: float, max_height: float):
    try:
        _, raw = decode_data_uri(cover)
    except ValueError:
        logger.warning("Cover is not a data URI; exporting without it")
        return None
    try:
        width, height = ImageReader(io.BytesIO(raw)).getSize()
    except (OSError, ValueError, RuntimeError) as e:
        logger.warning("Cover image could not be read (%s); exporting without it", e)
        return None
    scale = min(max_width / width, max_height / height)
    return Image(io.BytesIO(raw), width=width * scale, height=height * scale)


def _manuscript_flowables(text: str, styles: dict) -> list:
    """Walk the manuscript line by line, grouping paragraphs and code fences."""
    story: list = []
    paragraph: list[str] = []
    code: list[str] | None = None

    def flush():
        if paragraph:
            story.append(Paragraph(_escape(" ".join(paragraph)), styles["body"]))
            paragraph.clear()

    for line in text.replace("\r\n", "\n").split("\n"):
        stripped = line.strip()
        if code is not None:
            if stripped.startswith("```"):
                story.append(Preformatted("\n".join(code), styles["code"]))
                code = None
            else:
                code.append(line)
            continue
        if stripped.startswith("```"):
            flush()
            code = []
        elif not stripped:
            flush()
        elif _SEPARATOR_RE.match(stripped):
            flush()
            story.append(PageBreak())
        elif stripped.startswith("#"):
            flush()
            level = len(stripped) - len(stripped.lstrip("#"))
            style = styles["h1"] if level == 1 else styles["h2"] if level == 2 else styles["h3"]
            story.append(Paragraph(_escape(stripped[level:].strip()), style))
        else:
            paragraph.append(stripped)

    flush()
    if code:
        # unterminated fence
        story.append(Preformatted("\n".join(code), styles["code"]))
    return story


def render_pdf(entry: LibraryEntry) -> bytes:
    title = entry.title
    font = None
    if _CJK_RE.search(title + entry.manuscript):
        pdfmetrics.registerFont(UnicodeCIDFont(_CJK_FONT))
        font = _CJK_FONT
    styles = _styles(font)

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        topMargin=1 * inch,
        bottomMargin=1 * inch,
        leftMargin=1 * inch,
        rightMargin=1 * inch,
        title=title,
    )

    story: list = [Spacer(1, 1.0 * inch), Paragraph(_escape(title), styles["title"])]
    if entry.cover:
        image = _cover_flowable(entry.cover, doc.width, doc.height - 2.0 * inch)
        if image is not None:
            story += [Spacer(1, 0.3 * inch), image]
    story.append(PageBreak())
    story += _manuscript_flowables(entry.manuscript, styles)

    def add_page_numbers(canvas, _doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 9)
        canvas.drawRightString(200 * mm, 15 * mm, str(canvas.getPageNumber()))
        canvas.restoreState()

    doc.build(story, onLaterPages=add_page_numbers)
    return buf.getvalue()
