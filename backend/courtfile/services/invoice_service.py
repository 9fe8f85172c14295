"""
Filing-fee invoice PDF rendering.

`render_invoice_pdf` is pure: it takes plain invoice data and returns bytes,
so an invoice can be regenerated from stored payment/case/user rows at any time.
"""
from __future__ import annotations

import io
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from courtfile.core.config import settings
from courtfile.utils.helpers import now_ms


@dataclass(frozen=True)
class InvoiceData:
    invoice_number: str
    invoice_date: datetime
    customer_name: str
    customer_email: str
    case_number: str
    case_title: str
    payment_id: str
    amount: Decimal
    currency: str
    payment_method: str
    transaction_id: str
    description: Optional[str] = None


def make_invoice_number(payment_id) -> str:
    return f"INV-{str(payment_id)[-6:]}-{str(now_ms())[-6:]}".upper()


def invoice_filename(case_number: str) -> str:
    return f"invoice_{re.sub(r'[^A-Za-z0-9]', '_', case_number or 'case')}.pdf"


def build_invoice_data(payment, case, user) -> InvoiceData:
    return InvoiceData(
        invoice_number=make_invoice_number(payment.id),
        invoice_date=payment.payment_date or payment.created_at or datetime.utcnow(),
        customer_name=user.name,
        customer_email=user.email,
        case_number=case.case_number,
        case_title=case.title,
        payment_id=str(payment.id),
        amount=Decimal(str(payment.amount)),
        currency=payment.currency,
        payment_method=getattr(payment.payment_method, "value", payment.payment_method),
        transaction_id=payment.transaction_id,
        description=payment.description,
    )


def _money(amount: Decimal, currency: str) -> str:
    # base fonts have no rupee glyph
    return f"{currency} {amount.quantize(Decimal('0.01')):,}"


def render_invoice_pdf(data: InvoiceData) -> bytes:
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=2.5 * cm,
        rightMargin=2.5 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=f"Invoice {data.invoice_number}",
    )
    styles = getSampleStyleSheet()
    header = ParagraphStyle("InvHeader", parent=styles["Title"], fontSize=20, leading=24, alignment=TA_CENTER)
    sub = ParagraphStyle("InvSub", parent=styles["Normal"], fontSize=12, leading=16, alignment=TA_CENTER)
    right = ParagraphStyle("InvRight", parent=styles["Normal"], fontSize=10, leading=14, alignment=TA_RIGHT)
    body = ParagraphStyle("InvBody", parent=styles["Normal"], fontSize=10, leading=14)
    footer = ParagraphStyle("InvFooter", parent=body, fontSize=9, textColor=colors.grey, alignment=TA_CENTER)

    story = [
        Paragraph(settings.APP_NAME, header),
        Paragraph(settings.COURT_NAME, sub),
        Paragraph("<b>Tax Invoice</b>", sub),
        Spacer(1, 0.8 * cm),
        Paragraph(f"Invoice Number: {data.invoice_number}", right),
        Paragraph(f"Date: {data.invoice_date.strftime('%d %b %Y')}", right),
        Spacer(1, 0.6 * cm),
        Paragraph("<b>Billed To:</b>", body),
        Paragraph(escape(data.customer_name), body),
        Paragraph(escape(data.customer_email), body),
        Paragraph(f"Case Number: {escape(data.case_number)}", body),
        Paragraph(f"Payment ID: {data.payment_id}", body),
        Spacer(1, 0.8 * cm),
    ]

    line = data.description or f"Filing fee for case {data.case_number}"
    amount = _money(data.amount, data.currency)
    table = Table(
        [["Description", "Amount"], [Paragraph(escape(line), body), amount], ["Total", amount]],
        colWidths=[doc.width * 0.7, doc.width * 0.3],
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F3A5F")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, -1), (-1, -1), 1, colors.black),
        ("GRID", (0, 0), (-1, -2), 0.5, colors.lightgrey),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
    ]))
    story += [
        table,
        Spacer(1, 0.8 * cm),
        Paragraph(f"<b>Payment Method:</b> {data.payment_method}", body),
        Paragraph(f"<b>Transaction ID:</b> {data.transaction_id}", body),
        Spacer(1, 1.5 * cm),
        Paragraph("Thank you for using the Online Case Filing System.", footer),
        Paragraph("This is a computer-generated invoice and does not require a signature.", footer),
    ]
    doc.build(story)
    return buf.getvalue()
