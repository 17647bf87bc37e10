# orders/invoice.py
import io

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


def _rs(value):
    return f"Rs. {value:,.2f}"


def build_invoice_pdf(order):
    """Render a one-page tax invoice for ``order`` and return the PDF bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Invoice {order.pk}")
    styles = getSampleStyleSheet()
    elements = []

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#8b5cf6'),
        spaceAfter=12,
        alignment=TA_CENTER,
    )
    elements.append(Paragraph(f"{settings.STORE_NAME} - Tax Invoice", title_style))

    placed = timezone.localtime(order.created_at).strftime('%d %b %Y, %I:%M %p')
    meta = [
        f"<b>Order:</b> {order.pk}",
        f"<b>Date:</b> {placed}",
        f"<b>Payment:</b> {order.get_payment_method_display()}",
        f"<b>Status:</b> {order.get_status_display()}",
    ]
    for line in meta:
        elements.append(Paragraph(line, styles['Normal']))

    address = getattr(order, 'address', None)
    if address is not None:
        elements.append(Spacer(1, 0.2 * inch))
        elements.append(Paragraph("<b>Ship to</b>", styles['Normal']))
        parts = [address.name, address.address, address.city, address.state or '', address.pincode, address.phone]
        elements.append(Paragraph("<br/>".join(p for p in parts if p), styles['Normal']))

    elements.append(Spacer(1, 0.3 * inch))

    data = [['Product', 'Variant', 'Qty', 'Unit Price', 'Amount']]
    for item in order.items.all():
        variant = " / ".join(v for v in (item.flavor, item.size) if v) or "-"
        name = item.product_name[:40] + "..." if len(item.product_name) > 40 else item.product_name
        data.append([name, variant, str(item.quantity), _rs(item.price), _rs(item.line_total)])

    data += [
        ['', '', '', 'Subtotal', _rs(order.subtotal)],
        ['', '', '', 'Discount', f"- {_rs(order.discount)}"],
        ['', '', '', 'GST', _rs(order.gst_amount)],
    ]
    if order.coupon_discount:
        data.append(['', '', '', 'Coupon', f"- {_rs(order.coupon_discount)}"])
    data.append(['', '', '', 'Total', _rs(order.total_amount)])

    table = Table(data, colWidths=[2.6 * inch, 1.3 * inch, 0.5 * inch, 1.2 * inch, 1.2 * inch])
    item_rows = order.items.count()
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#8b5cf6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('ALIGN', (2, 0), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, item_rows), 0.5, colors.grey),
        ('FONTNAME', (3, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (3, -1), (-1, -1), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(table)

    doc.build(elements)
    return buffer.getvalue()
