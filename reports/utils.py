"""
Utility functions for reports
"""
import io
from collections import Counter

from django.http import HttpResponse
from django.utils import timezone
from django.utils.dateparse import parse_date

# PDF
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

# Excel
import openpyxl
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from loans.records import ACTIVE, OVERDUE, RETURNED

BRAND_COLOR = '667eea'
XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


# ========== SUMMARIES ==========

def books_by_genre(books):
    """
    Titles and copies per genre, largest first
    Returns: list of dicts {'genre', 'titles', 'copies', 'available'}
    """
    groups = {}
    for book in books:
        genre = book.genre or 'Uncategorized'
        group = groups.setdefault(genre, {'genre': genre, 'titles': 0, 'copies': 0, 'available': 0})
        group['titles'] += 1
        group['copies'] += book.total_copies
        group['available'] += book.available_copies
    return sorted(groups.values(), key=lambda group: (-group['titles'], group['genre']))


def transactions_by_status(transactions, now=None):
    counts = Counter(txn.status(now=now) for txn in transactions)
    return [(status, counts.get(status, 0)) for status in (ACTIVE, OVERDUE, RETURNED)]


def users_per_month(users):
    """
    Registrations per calendar month, oldest first
    Returns: list of tuples [('2025-01', 4), ...]
    """
    counts = Counter(
        user.created_at.strftime('%Y-%m') for user in users if user.created_at is not None
    )
    return sorted(counts.items())


def _parse_day(value):
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError:
        return None


def filter_transactions(transactions, status_label=None, start_date=None, end_date=None, now=None):
    """
    Narrow transactions by derived status and by borrow date (inclusive)
    Args:
        status_label: ACTIVE / OVERDUE / RETURNED or None
        start_date, end_date: 'YYYY-MM-DD' strings or None
    """
    start = _parse_day(start_date)
    end = _parse_day(end_date)

    selected = []
    for txn in transactions:
        if status_label and txn.status(now=now) != status_label:
            continue
        borrowed = txn.borrowed_at.date() if txn.borrowed_at else None
        if start and (borrowed is None or borrowed < start):
            continue
        if end and (borrowed is None or borrowed > end):
            continue
        selected.append(txn)
    return selected


def format_date(value):
    return value.strftime('%d/%m/%Y') if value else '-'


# ========== EXPORTS ==========

def _attachment(buffer, content_type, basename, extension):
    buffer.seek(0)
    response = HttpResponse(buffer, content_type=content_type)
    filename = f"{basename}_{timezone.now().strftime('%Y%m%d_%H%M%S')}.{extension}"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def pdf_report(title, headers, rows, summary=(), basename='report'):
    """
    Render a titled table (plus an optional summary table) as a PDF download
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4))
    elements = []

    # Styles
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'CustomTitle',
        parent=styles['Heading1'],
        fontSize=16,
        textColor=colors.HexColor(f'#{BRAND_COLOR}'),
        spaceAfter=30,
        alignment=TA_CENTER
    )

    elements.append(Paragraph(title.upper(), title_style))
    generated = Paragraph(f"Generated: {timezone.now().strftime('%d %B %Y %H:%M')}", styles['Normal'])
    elements.append(generated)
    elements.append(Spacer(1, 20))

    # Table data
    data = [list(headers)] + [[str(cell) for cell in row] for row in rows]

    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(f'#{BRAND_COLOR}')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 10),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
        ('GRID', (0, 0), (-1, -1), 1, colors.black),
        ('FONTSIZE', (0, 1), (-1, -1), 8),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
    ]))
    elements.append(table)

    # Summary
    if summary:
        elements.append(Spacer(1, 20))
        summary_table = Table([[label, str(value)] for label, value in summary], colWidths=[2*inch, 2*inch])
        summary_table.setStyle(TableStyle([
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
        ]))
        elements.append(summary_table)

    doc.build(elements)
    return _attachment(buffer, 'application/pdf', basename, 'pdf')


def excel_report(title, headers, rows, summary=(), basename='report'):
    """
    Render the same table as an .xlsx download
    """
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = title[:31]

    # Styles
    header_fill = PatternFill(start_color=BRAND_COLOR, end_color=BRAND_COLOR, fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=12)
    border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    # Title
    last_column = get_column_letter(len(headers))
    ws.merge_cells(f'A1:{last_column}1')
    ws['A1'] = title.upper()
    ws['A1'].font = Font(bold=True, size=16, color=BRAND_COLOR)
    ws['A1'].alignment = Alignment(horizontal='center')
    ws['A2'] = f"Generated: {timezone.now().strftime('%d %B %Y %H:%M')}"

    # Headers
    for col, header in enumerate(headers, 1):
        cell = ws.cell(row=4, column=col)
        cell.value = header
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal='center')
        cell.border = border

    # Data
    row = 5
    widths = [len(str(header)) for header in headers]
    for values in rows:
        for col, value in enumerate(values, 1):
            ws.cell(row=row, column=col, value=value).border = border
            widths[col - 1] = max(widths[col - 1], len(str(value)))
        row += 1

    # Summary
    if summary:
        row += 1
        for label, value in summary:
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=2, value=value).font = Font(bold=True)
            row += 1

    # Adjust column widths
    for col, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = min(width + 2, 50)

    buffer = io.BytesIO()
    wb.save(buffer)
    return _attachment(buffer, XLSX_CONTENT_TYPE, basename, 'xlsx')
