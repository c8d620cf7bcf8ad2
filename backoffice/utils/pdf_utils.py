"""
PDF generation utilities for the institute back-office
"""

import io
from typing import Any, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm, inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


class PDFGenerator:
    """Renders documents into in-memory PDFs"""

    def __init__(self, page_size=A4, margins=None):
        self.page_size = page_size
        self.margins = margins or {'top': 2*cm, 'bottom': 2*cm, 'left': 2*cm, 'right': 2*cm}
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            textColor=colors.darkblue,
            spaceAfter=20,
            alignment=TA_CENTER
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontSize=14,
            textColor=colors.darkblue,
            spaceBefore=14,
            spaceAfter=8
        ))

        self.styles.add(ParagraphStyle(
            name='Footnote',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=colors.grey,
            alignment=TA_CENTER
        ))

    def create_document(self, buffer: io.BytesIO, title: Optional[str] = None) -> SimpleDocTemplate:
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.page_size,
            topMargin=self.margins['top'],
            bottomMargin=self.margins['bottom'],
            leftMargin=self.margins['left'],
            rightMargin=self.margins['right']
        )
        if title:
            doc.title = title
        return doc

    def _create_table(self, data: List[List[str]], headers: Optional[List[str]] = None) -> Table:
        """Create a formatted two-tone table"""
        table_data = []
        if headers:
            table_data.append(headers)
        table_data.extend(data)

        table = Table(table_data, colWidths=[2.5*inch, 3.5*inch])

        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey) if headers else None,
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke) if headers else None,
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold') if headers else None,
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 1 if headers else 0), (0, -1), 'Helvetica-Bold'),
            ('BACKGROUND', (0, 1 if headers else 0), (-1, -1), colors.beige),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ]

        # Remove None entries
        style = [s for s in style if s is not None]
        table.setStyle(TableStyle(style))
        return table

    def generate_receipt(self, receipt: Dict[str, Any], currency: str = "INR") -> bytes:
        """
        Render a payment receipt.

        Args:
            receipt: Receipt data as returned by the payment service
            currency: Currency code printed next to the amount

        Returns:
            The PDF document as bytes
        """
        buffer = io.BytesIO()
        doc = self.create_document(buffer, title=f"Receipt {receipt.get('receiptNumber', '')}")
        story = []

        institute = receipt.get('institute') or {}
        story.append(Paragraph(institute.get('name') or 'Payment Receipt', self.styles['CustomTitle']))
        contact = " | ".join(
            value for value in (
                institute.get('address'),
                institute.get('phone'),
                institute.get('email'),
                institute.get('website'),
            ) if value
        )
        if contact:
            story.append(Paragraph(contact, self.styles['Footnote']))
        story.append(Spacer(1, 20))

        story.append(Paragraph('Payment Receipt', self.styles['CustomHeading']))
        student = receipt.get('student') or {}
        enrollment = receipt.get('enrollment') or {}
        rows = [
            ['Receipt Number', receipt.get('receiptNumber', '')],
            ['Payment ID', receipt.get('paymentId', '')],
            ['Payment Date', str(receipt.get('paymentDate', ''))[:10]],
            ['Student', f"{student.get('name', '')} ({student.get('id', '')})"],
            ['Course', f"{enrollment.get('course', '')} ({enrollment.get('courseCode', '')})" if enrollment else 'N/A'],
            ['Payment Mode', str(receipt.get('paymentMode', '')).replace('_', ' ').title()],
            ['Status', str(receipt.get('status', '')).title()],
            ['Amount', f"{currency} {float(receipt.get('amount') or 0):,.2f}"],
            ['Received By', receipt.get('receivedBy', 'N/A')],
            ['Verified By', receipt.get('verifiedBy', 'N/A')],
        ]
        story.append(self._create_table(rows))
        story.append(Spacer(1, 30))

        story.append(Paragraph(
            f"Generated at {receipt.get('generatedAt', '')}. This is a computer generated receipt.",
            self.styles['Footnote']
        ))

        doc.build(story)
        return buffer.getvalue()
