"""
Legal notice PDF rendering.

Layout: letterhead, title, date/recipient/subject block, body paragraphs
(short all-caps paragraphs become sub-headings), optional citations box and
a disclaimer footer on every page.
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from helpdesk.store import artifact_cache
from helpdesk.utils.time import format_notice_date

LETTERHEAD = "CONSUMER SCAM HELPDESK"
LETTERHEAD_SUB = "Consumer grievance drafting service"
TITLE = "LEGAL NOTICE UNDER THE CONSUMER PROTECTION ACT, 2019"
DISCLAIMER = (
    "Drafted electronically by the Consumer Scam Helpdesk. This is an AI-assisted draft "
    "and does not constitute formal legal counsel. Review it before sending."
)
# All-caps paragraphs shorter than this are rendered as sub-headings
HEADING_MAX_CHARS = 80

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]|\x1b[@-Z\\-_]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")


@dataclass
class NoticeMetadata:
    recipient: str
    subject: str
    amount: str = ""
    incident_date: str = ""
    citations: Optional[str] = None
    date_ms: Optional[int] = None


def sanitize(text: str) -> str:
    """Strip ANSI/escape sequences and control characters, keep newlines and tabs."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_RE.sub("", text)
    return _CONTROL_RE.sub("", text)


def split_paragraphs(body: str) -> List[str]:
    blocks = re.split(r"\n\s*\n", sanitize(body))
    out = []
    for b in blocks:
        b = " ".join(line.strip() for line in b.split("\n")).strip()
        if b:
            out.append(b)
    return out


def is_heading(paragraph: str) -> bool:
    letters = [c for c in paragraph if c.isalpha()]
    return bool(letters) and len(paragraph) < HEADING_MAX_CHARS and paragraph == paragraph.upper()


def _markup(text: str) -> str:
    # Paragraph() parses a mini-markup; user text must not inject tags
    return escape(sanitize(text))


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "letterhead": ParagraphStyle("letterhead", parent=base["Title"], fontSize=16, spaceAfter=2),
        "letterhead_sub": ParagraphStyle("letterhead_sub", parent=base["Normal"], alignment=TA_CENTER,
                                         fontSize=9, textColor=colors.grey),
        "title": ParagraphStyle("title", parent=base["Heading2"], alignment=TA_CENTER, fontSize=13,
                                spaceBefore=8, spaceAfter=10),
        "meta": ParagraphStyle("meta", parent=base["Normal"], fontSize=10, leading=14),
        "date": ParagraphStyle("date", parent=base["Normal"], fontSize=10, alignment=TA_RIGHT),
        "heading": ParagraphStyle("heading", parent=base["Heading4"], fontSize=11, spaceBefore=8, spaceAfter=4),
        "body": ParagraphStyle("body", parent=base["Normal"], fontSize=11, leading=15, alignment=TA_JUSTIFY,
                               spaceAfter=8),
        "callout_title": ParagraphStyle("callout_title", parent=base["Normal"], fontName="Helvetica-Bold",
                                        fontSize=10, spaceAfter=3),
        "callout": ParagraphStyle("callout", parent=base["Normal"], fontSize=9.5, leading=13),
    }


def _draw_footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica-Oblique", 8)
    canvas.setFillColor(colors.grey)
    width, _ = A4
    canvas.drawCentredString(width / 2, 12 * mm, DISCLAIMER[:110])
    if len(DISCLAIMER) > 110:
        canvas.drawCentredString(width / 2, 8 * mm, DISCLAIMER[110:])
    canvas.drawRightString(width - 18 * mm, 8 * mm - 4, f"Page {doc.page}")
    canvas.restoreState()


def render_notice(notice_body: str, metadata: NoticeMetadata) -> bytes:
    """Render the notice to PDF bytes."""
    st = _styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=24 * mm,
        title="Legal Notice",
    )

    story = [
        Paragraph(LETTERHEAD, st["letterhead"]),
        Paragraph(LETTERHEAD_SUB, st["letterhead_sub"]),
        Spacer(1, 4 * mm),
        Paragraph(TITLE, st["title"]),
        Paragraph(f"Date: {_markup(format_notice_date(metadata.date_ms))}", st["date"]),
        Spacer(1, 3 * mm),
        Paragraph(f"<b>To:</b> The Grievance Officer, {_markup(metadata.recipient)}", st["meta"]),
        Paragraph(f"<b>Subject:</b> {_markup(metadata.subject)}", st["meta"]),
    ]
    if metadata.amount:
        story.append(Paragraph(f"<b>Amount in dispute:</b> Rs {_markup(metadata.amount)}", st["meta"]))
    if metadata.incident_date:
        story.append(Paragraph(f"<b>Date of order/incident:</b> {_markup(metadata.incident_date)}", st["meta"]))
    story.append(Spacer(1, 6 * mm))

    for para in split_paragraphs(notice_body):
        if is_heading(para):
            story.append(Paragraph(_markup(para), st["heading"]))
        else:
            story.append(Paragraph(_markup(para), st["body"]))

    citations = sanitize(metadata.citations or "").strip()
    if citations:
        box = Table(
            [[Paragraph("Legal basis", st["callout_title"])], [Paragraph(_markup(citations), st["callout"])]],
            colWidths=[doc.width],
        )
        box.setStyle(TableStyle([
            ("BOX", (0, 0), (-1, -1), 0.8, colors.HexColor("#2f5597")),
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#eef3fb")),
            ("LEFTPADDING", (0, 0), (-1, -1), 8),
            ("RIGHTPADDING", (0, 0), (-1, -1), 8),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        story.extend([Spacer(1, 4 * mm), box])

    doc.build(story, onFirstPage=_draw_footer, onLaterPages=_draw_footer)
    return buf.getvalue()


def render_notice_artifact(notice_body: str, metadata: NoticeMetadata) -> tuple[str, str]:
    """Render, store in the one-time cache and return (artifact_id, fetch_url)."""
    pdf = render_notice(notice_body, metadata)
    artifact_id = artifact_cache.put_artifact(pdf, artifact_cache.PDF)
    return artifact_id, artifact_cache.artifact_url(artifact_id)
