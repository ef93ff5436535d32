"""
Invoice PDF Generator
Renders a booking invoice with reportlab
"""

import io
import logging
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ...models import Booking
from ...shared.formatting import format_currency

logger = logging.getLogger(__name__)


class InvoicePDFGenerator:
    """Generate a one page invoice for a paid or payable booking"""

    def __init__(self, booking: Booking):
        self.booking = booking

        self.page_width, self.page_height = A4
        self.margin = 0.75 * inch

        self.brand_color = colors.HexColor("#2563eb")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")

    def generate(self) -> bytes:
        """Generate PDF and return bytes"""
        booking = self.booking
        logger.info(f"📄 Generating invoice PDF {booking.invoice_number} for booking {booking.id}")

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=f"Invoice {booking.invoice_number}",
        )

        story = []
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "InvoiceTitle",
            parent=styles["Heading1"],
            fontSize=24,
            textColor=self.brand_color,
            spaceAfter=12,
        )
        body_style = ParagraphStyle(
            "InvoiceBody",
            parent=styles["Normal"],
            fontSize=10,
            textColor=self.dark_gray,
            spaceAfter=6,
        )

        story.append(Paragraph("FixerHub", title_style))
        story.append(Paragraph(f"Invoice <b>{booking.invoice_number}</b>", body_style))
        story.append(Spacer(1, 0.3 * inch))

        seeker = booking.service_seeker
        provider = booking.service_provider
        info_data = [
            ["Billed to:", seeker.name if seeker else "N/A"],
            ["Email:", seeker.email if seeker else "N/A"],
            ["Service provider:", provider.name if provider else "N/A"],
            ["Service date:", booking.date.strftime("%B %d, %Y") if booking.date else "N/A"],
            ["Issued:", datetime.utcnow().strftime("%B %d, %Y")],
            ["Payment status:", booking.payment_status.replace("_", " ").title()],
        ]
        if booking.invoice_paid_date:
            info_data.append(["Paid on:", booking.invoice_paid_date.strftime("%B %d, %Y")])

        info_table = Table(info_data, colWidths=[1.6 * inch, 4.4 * inch])
        info_table.setStyle(
            TableStyle(
                [
                    ("FONT", (0, 0), (0, -1), "Helvetica-Bold", 10),
                    ("FONT", (1, 0), (1, -1), "Helvetica", 10),
                    ("TEXTCOLOR", (0, 0), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
                ]
            )
        )
        story.append(info_table)
        story.append(Spacer(1, 0.4 * inch))

        currency = booking.invoice_currency or "LKR"
        line_data = [
            ["Description", "Amount"],
            [Paragraph(booking.description, body_style), format_currency(booking.invoice_subtotal or 0, currency)],
            ["Tax", format_currency(booking.invoice_tax_amount or 0, currency)],
            ["Total", format_currency(booking.invoice_total_amount or 0, currency)],
        ]
        line_table = Table(line_data, colWidths=[4.5 * inch, 1.5 * inch])
        line_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), "Helvetica-Bold", 10),
                    ("FONT", (0, 1), (-1, -1), "Helvetica", 10),
                    ("FONT", (0, -1), (-1, -1), "Helvetica-Bold", 11),
                    ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -2), [colors.white, self.light_gray]),
                    ("LINEABOVE", (0, -1), (-1, -1), 1, self.dark_gray),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                ]
            )
        )
        story.append(line_table)

        story.append(Spacer(1, 0.5 * inch))
        story.append(
            Paragraph(
                "<i>Thank you for using FixerHub.</i>",
                ParagraphStyle("Footer", parent=body_style, fontSize=8, textColor=colors.grey, alignment=1),
            )
        )

        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)

        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"✅ Generated invoice PDF ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _add_page_number(self, canvas_obj, doc):
        canvas_obj.setFont("Helvetica", 9)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(
            self.page_width - self.margin, self.margin / 2, f"Page {canvas_obj.getPageNumber()}"
        )
