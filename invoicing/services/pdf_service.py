"""PDF rendering of invoices and quotes (reportlab)."""
from io import BytesIO
from typing import Any, Dict, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from invoicing.engine import compute
from invoicing.models import CompanySettings, Invoice, Quote
from invoicing.services.line_items import document_discount_from_row, line_items_from_rows
from invoicing.utils.formatters import date_de, money_de, num_de


def _render_document_pdf(title: str, meta_rows: List[List[str]], document, company: Dict[str, Any],
                         footer: str = None) -> BytesIO:
    """
    Internal PDF rendering engine shared by invoices and quotes.

    Totals are the persisted amounts; the per-rate tax breakdown is taken
    from the engine over the stored items.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'DocumentTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'CompanyHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    # 1. Title and company header
    elements.append(Paragraph(title, title_style))

    if company.get('name'):
        elements.append(Paragraph(f"<b>{escape(company['name'])}</b>", header_style))
    if company.get('address'):
        elements.append(Paragraph(escape(company['address']), header_style))

    contact_parts = []
    if company.get('phone'):
        contact_parts.append(f"Tel: {escape(company['phone'])}")
    if company.get('email'):
        contact_parts.append(f"E-Mail: {escape(company['email'])}")
    if company.get('tax_id'):
        contact_parts.append(f"USt-IdNr.: {escape(company['tax_id'])}")
    if contact_parts:
        elements.append(Paragraph(" | ".join(contact_parts), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Metadata table
    meta_table = Table(meta_rows, colWidths=[2*inch, 3*inch])
    meta_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(meta_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items table
    table_data = [['Pos.', 'Beschreibung', 'Menge', 'Einzelpreis', 'Rabatt', 'USt.', 'Betrag']]
    for item in document.items:
        table_data.append([
            str(item.item_order),
            item.description or '',
            num_de(item.quantity),
            money_de(item.unit_price),
            money_de(item.discount_amount) if item.discount_amount else '',
            f"{num_de(item.tax_rate)} %",
            money_de(item.total),
        ])

    items_table = Table(table_data, colWidths=[0.45*inch, 2.35*inch, 0.6*inch, 0.95*inch,
                                               0.8*inch, 0.5*inch, 0.95*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals with discount and tax breakdown
    result = compute(line_items_from_rows(document.items), document_discount_from_row(document))
    totals_data = [['Zwischensumme:', money_de(document.subtotal)]]
    if result.item_discount_total:
        totals_data.append(['Positionsrabatte:', money_de(-result.item_discount_total)])
    if document.discount_amount:
        totals_data.append(['Rabatt:', money_de(-document.discount_amount)])
    totals_data.append(['Netto:', money_de(document.total - document.tax_amount)])
    for bucket in result.tax_buckets:
        totals_data.append([f"USt. {num_de(bucket.rate)} %:", money_de(bucket.tax_amount)])
    totals_data.append(['GESAMT:', money_de(document.total)])

    totals_table = Table(totals_data, colWidths=[5.5*inch, 1.2*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -2), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#E8F8F5')),
        ('BOX', (0, -1), (-1, -1), 2, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9,
                                  textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    footer_text = footer or ''
    if document.notes:
        notes = escape(document.notes).replace('\n', '<br/>')
        footer_text += f"<br/><br/><b>Hinweise:</b> {notes}"
    if footer_text:
        elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def _company_info(company: CompanySettings) -> Dict[str, Any]:
    if company is None:
        return {}
    return {
        'name': company.name,
        'address': company.address,
        'phone': company.phone,
        'email': company.email,
        'tax_id': company.tax_id,
    }


def generate_invoice_pdf(invoice: Invoice, company: CompanySettings) -> BytesIO:
    meta_rows = [
        ['Rechnung Nr.:', invoice.invoice_number],
        ['Rechnungsdatum:', date_de(invoice.issue_date)],
        ['Fällig am:', date_de(invoice.due_date)],
        ['Kunde:', invoice.customer_name],
    ]
    footer = f"Bitte überweisen Sie den Betrag bis zum {date_de(invoice.due_date)}."
    return _render_document_pdf('RECHNUNG', meta_rows, invoice, _company_info(company), footer)


def generate_quote_pdf(quote: Quote, company: CompanySettings) -> BytesIO:
    meta_rows = [
        ['Angebot Nr.:', quote.quote_number],
        ['Angebotsdatum:', date_de(quote.issue_date)],
    ]
    if quote.valid_until:
        meta_rows.append(['Gültig bis:', date_de(quote.valid_until)])
    meta_rows.append(['Kunde:', quote.customer_name])
    footer = "<i>Dieses Angebot ist keine Rechnung.</i>"
    return _render_document_pdf('ANGEBOT', meta_rows, quote, _company_info(company), footer)
