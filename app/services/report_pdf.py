"""
Leakwatch - Revenue Leak Report PDF
One-page A4 cover report built from shop identity only
"""

import io
import re
from datetime import datetime, timezone
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer


BRAND_GREEN = colors.HexColor("#008060")
WHITE = colors.white
MUTED = colors.HexColor("#6d7175")

PAGE_W, PAGE_H = A4
BAND_HEIGHT = 120
DEFAULT_SHOP_NAME = "Your Store"


def _band(canvas, doc, shop_name: str):
    """Green title band across the top of the page."""
    canvas.saveState()
    canvas.setFillColor(BRAND_GREEN)
    canvas.rect(0, PAGE_H - BAND_HEIGHT, PAGE_W, BAND_HEIGHT, fill=1, stroke=0)
    canvas.setFillColor(WHITE)
    canvas.setFont("Helvetica-Bold", 28)
    canvas.drawString(50, PAGE_H - 70, "Revenue Leak Report")
    canvas.setFont("Helvetica", 14)
    canvas.drawString(50, PAGE_H - 98, shop_name)
    canvas.restoreState()


def report_filename(shop_name: Optional[str]) -> str:
    """`<shop name>-revenue-leak-report.pdf`, quotes and path separators dropped"""
    name = re.sub(r'["\\/\r\n]', "", shop_name or DEFAULT_SHOP_NAME).strip() or DEFAULT_SHOP_NAME
    return f"{name}-revenue-leak-report.pdf"


def generate_report_pdf(shop_name: Optional[str], shop_domain: Optional[str] = None) -> bytes:
    shop_name = shop_name or DEFAULT_SHOP_NAME

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        topMargin=BAND_HEIGHT + 30,
        bottomMargin=50,
        leftMargin=50,
        rightMargin=50,
        title=f"Revenue Leak Report - {shop_name}",
    )

    ss = getSampleStyleSheet()
    body = ParagraphStyle("ReportBody", parent=ss["Normal"], fontName="Helvetica", fontSize=11, leading=15)
    muted = ParagraphStyle("ReportMuted", parent=body, fontSize=9, textColor=MUTED)

    story = []
    if shop_domain:
        story.append(Paragraph(escape(shop_domain), muted))
        story.append(Spacer(1, 8))
    story.append(Paragraph(
        "Run a scan from the Leakwatch dashboard to see your revenue leak score, "
        "abandoned checkouts and recovery actions.",
        body,
    ))
    story.append(Spacer(1, 12))
    story.append(Paragraph(f"Generated {datetime.now(timezone.utc).strftime('%d %B %Y')}", muted))

    def on_page(canvas, doc):
        _band(canvas, doc, shop_name)

    doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
    return buf.getvalue()
