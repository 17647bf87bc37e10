# coupons/reports.py
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from django.utils import timezone

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def build_commission_workbook(report):
    """Excel version of get_trainer_commission_report() output."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Commission Report"

    # ---------------------------
    # SUMMARY
    # ---------------------------
    generated = timezone.localtime(report['report_date']).strftime('%d-%b-%Y %I:%M %p')
    ws.append(["Trainer", report['trainer_name']])
    ws.append(["Report Date", generated])
    ws.append(["Coupons Issued", report['total_coupons_issued']])
    ws.append(["Total Usages", report['total_usages']])
    ws.append(["Total Discount Given", float(report['total_discount_given'])])
    for row in range(1, 6):
        ws.cell(row=row, column=1).font = Font(bold=True)
    ws.append([])

    # ---------------------------
    # HEADERS
    # ---------------------------
    headers = ["Code", "Trainer", "Discount %", "Usages", "Total Discount", "Active"]
    ws.append(headers)
    header_row = ws.max_row

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF", size=11)
    for cell in ws[header_row]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center")

    # ---------------------------
    # DATA ROWS
    # ---------------------------
    for detail in report['coupon_details']:
        ws.append([
            detail['code'],
            detail['trainer_name'],
            float(detail['discount_percent']),
            detail['usage_count'],
            float(detail['total_discount_amount']),
            "Yes" if detail['is_active'] else "No",
        ])

    thin = Border(
        left=Side(style='thin'), right=Side(style='thin'),
        top=Side(style='thin'), bottom=Side(style='thin')
    )
    for row in range(header_row + 1, ws.max_row + 1):
        for col in range(1, len(headers) + 1):
            cell = ws.cell(row=row, column=col)
            cell.border = thin
            if row % 2 == 0:
                cell.fill = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
        ws.cell(row=row, column=5).alignment = Alignment(horizontal="right")

    widths = {'A': 24, 'B': 24, 'C': 12, 'D': 10, 'E': 16, 'F': 10}
    for col, width in widths.items():
        ws.column_dimensions[col].width = width

    ws.freeze_panes = ws.cell(row=header_row + 1, column=1)
    return wb
