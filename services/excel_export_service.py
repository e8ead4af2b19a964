"""
Excel export service for Brookfield School Information System
Handles Excel export for attendance, behavior and fee reports
"""

import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from io import BytesIO
from datetime import datetime

from services.attendance_service import AttendanceService
from services.behavior_service import BehaviorService
from services.fee_service import FeeService

class ExcelExportService:
    """Service for exporting reports to Excel"""

    @staticmethod
    def create_workbook():
        """Create a new workbook with default styling"""
        wb = openpyxl.Workbook()
        return wb

    @staticmethod
    def style_header_row(ws, row_num, columns):
        """Apply styling to header row"""
        header_font = Font(bold=True, color="FFFFFF")
        header_fill = PatternFill(start_color="000000", end_color="000000", fill_type="solid")
        header_alignment = Alignment(horizontal="center", vertical="center")

        for col_num, header in enumerate(columns, 1):
            cell = ws.cell(row=row_num, column=col_num, value=header)
            cell.font = header_font
            cell.fill = header_fill
            cell.alignment = header_alignment

    @staticmethod
    def auto_adjust_columns(ws):
        """Auto-adjust column widths"""
        for column in ws.columns:
            max_length = 0
            column_letter = get_column_letter(column[0].column)

            for cell in column:
                if cell.value is not None and len(str(cell.value)) > max_length:
                    max_length = len(str(cell.value))

            adjusted_width = min(max_length + 2, 50)
            ws.column_dimensions[column_letter].width = adjusted_width

    @staticmethod
    def format_number(value):
        """Format number: whole numbers without decimals, fractional numbers with 2 decimal places."""
        try:
            if value is None:
                return None
            num = float(value)
            if num == int(num):
                return int(num)
            else:
                return round(num, 2)
        except (ValueError, TypeError):
            return value

    @staticmethod
    def set_number(cell, value, align_right=False):
        """Set an integer/float number with alignment preferences."""
        cell.value = ExcelExportService.format_number(value)
        cell.alignment = Alignment(horizontal=("right" if align_right else "left"), vertical="center")
        return cell

    @staticmethod
    def set_currency(cell, value):
        cell.value = round(float(value or 0), 2)
        cell.number_format = '#,##0.00'
        cell.alignment = Alignment(horizontal="right", vertical="center")
        return cell

    @staticmethod
    def set_percentage(cell, percent_0_to_100, align_left=True):
        """Write a numeric percentage (avoid text with green triangle)."""
        if percent_0_to_100 is None:
            cell.value = None
        else:
            # 65.88 -> 0.6588 with a percent format
            cell.value = float(percent_0_to_100) / 100.0
            if percent_0_to_100 == int(percent_0_to_100):
                cell.number_format = '0%'
            else:
                cell.number_format = '0.00%'
        cell.alignment = Alignment(horizontal=("left" if align_left else "right"), vertical="center")
        return cell

    @staticmethod
    def write_field_table(ws, start_row, rows, headers=('Field', 'Value')):
        """Two column Field | Value table; returns the next free row"""
        ExcelExportService.style_header_row(ws, start_row, list(headers))
        row = start_row + 1
        for label, value in rows:
            ws.cell(row=row, column=1, value=label)
            ws.cell(row=row, column=2, value=value)
            row += 1
        return row

    @staticmethod
    def export_attendance_report(start_date, end_date):
        """Attendance summary, per-record sheet and truancy list for a date range"""
        ada = AttendanceService.calculate_ada(start_date, end_date)
        records = AttendanceService.get_records_in_range(start_date, end_date)
        truancy = AttendanceService.generate_truancy_report(start_date, end_date)

        wb = ExcelExportService.create_workbook()
        ws = wb.active
        ws.title = "Summary"
        row = ExcelExportService.write_field_table(ws, 1, [
            ("Period", f"{start_date.isoformat()} to {end_date.isoformat()}"),
            ("School Days", ada['total_days_in_period']),
            ("Days Present", ExcelExportService.format_number(ada['total_days_present'])),
            ("Days Absent", ada['total_days_absent']),
            ("Average Daily Attendance", ada['ada']),
            ("Attendance Rate", None),
        ])
        ExcelExportService.set_percentage(ws.cell(row=row - 1, column=2), ada['attendance_rate'])
        ws.cell(row=row, column=1, value="Generated")
        ws.cell(row=row, column=2, value=datetime.now().strftime('%Y-%m-%d %H:%M'))
        ExcelExportService.auto_adjust_columns(ws)

        detail = wb.create_sheet("Records")
        headers = ['Date', 'Student Number', 'Student Name', 'Course', 'Period', 'Status', 'Notes']
        ExcelExportService.style_header_row(detail, 1, headers)
        for row_num, record in enumerate(records, start=2):
            student = record.student
            detail.cell(row=row_num, column=1, value=record.attendance_date.isoformat())
            detail.cell(row=row_num, column=2, value=student.student_number if student else None)
            detail.cell(row=row_num, column=3, value=student.full_name if student else None)
            detail.cell(row=row_num, column=4, value=record.course.course_code if record.course else None)
            ExcelExportService.set_number(detail.cell(row=row_num, column=5), record.period_number, align_right=True)
            detail.cell(row=row_num, column=6, value=record.status)
            detail.cell(row=row_num, column=7, value=record.notes)
        ExcelExportService.auto_adjust_columns(detail)

        truant = wb.create_sheet("Truancy")
        ExcelExportService.style_header_row(truant, 1, ['Student Name', 'Grade', 'Unexcused Absences', 'Severity'])
        for row_num, case in enumerate(truancy['truancy_cases'], start=2):
            truant.cell(row=row_num, column=1, value=case['student_name'])
            ExcelExportService.set_number(truant.cell(row=row_num, column=2), case['grade_level'], align_right=True)
            ExcelExportService.set_number(truant.cell(row=row_num, column=3), case['unexcused_absences'], align_right=True)
            truant.cell(row=row_num, column=4, value=case['severity'])
        ExcelExportService.auto_adjust_columns(truant)

        return ExcelExportService.workbook_to_bytes(wb)

    @staticmethod
    def export_behavior_incidents(start_date, end_date, student_id=None):
        if student_id is not None:
            incidents = BehaviorService.get_incidents_in_range(student_id, start_date, end_date)
        else:
            incidents = BehaviorService.get_all_incidents_in_range(start_date, end_date)

        wb = ExcelExportService.create_workbook()
        ws = wb.active
        ws.title = "Behavior Incidents"
        headers = ['Date', 'Time', 'Student', 'Type', 'Category', 'Severity', 'Location',
                   'Description', 'Parent Contacted', 'Admin Referral']
        ExcelExportService.style_header_row(ws, 1, headers)
        for row_num, incident in enumerate(incidents, start=2):
            ws.cell(row=row_num, column=1, value=incident.incident_date.isoformat())
            ws.cell(row=row_num, column=2, value=incident.incident_time.strftime('%H:%M') if incident.incident_time else None)
            ws.cell(row=row_num, column=3, value=incident.student.full_name if incident.student else None)
            ws.cell(row=row_num, column=4, value=incident.behavior_type)
            ws.cell(row=row_num, column=5, value=incident.behavior_category)
            ws.cell(row=row_num, column=6, value=incident.severity_level)
            ws.cell(row=row_num, column=7, value=incident.location)
            ws.cell(row=row_num, column=8, value=incident.description)
            ws.cell(row=row_num, column=9, value='Yes' if incident.parent_contacted else 'No')
            ws.cell(row=row_num, column=10, value='Yes' if incident.admin_referral_required else 'No')

        positive = sum(1 for i in incidents if i.is_positive())
        negative = sum(1 for i in incidents if i.is_negative())
        summary_row = len(incidents) + 3
        ExcelExportService.write_field_table(ws, summary_row, [
            ("Total Incidents", len(incidents)),
            ("Positive", positive),
            ("Negative", negative),
            ("Behavior Ratio", BehaviorService.calculate_behavior_ratio(positive, negative)),
        ], headers=('Statistic', 'Value'))

        ExcelExportService.auto_adjust_columns(ws)
        return ExcelExportService.workbook_to_bytes(wb)

    @staticmethod
    def export_fee_collection(start_date, end_date):
        report = FeeService.get_collection_report(start_date, end_date)
        payments = FeeService.get_payments_in_range(start_date, end_date)

        wb = ExcelExportService.create_workbook()
        ws = wb.active
        ws.title = "Collection Summary"
        row = ExcelExportService.write_field_table(ws, 1, [
            ("Period", f"{report['start_date']} to {report['end_date']}"),
            ("Payments", report['total_payments']),
            ("Refunds", report['refund_count']),
            ("Total Collected", None),
        ])
        ExcelExportService.set_currency(ws.cell(row=row - 1, column=2), report['total_amount'])

        ExcelExportService.style_header_row(ws, row + 1, ['Payment Method', 'Amount'])
        row += 2
        for method, amount in report['by_payment_method'].items():
            ws.cell(row=row, column=1, value=method)
            ExcelExportService.set_currency(ws.cell(row=row, column=2), amount)
            row += 1
        ExcelExportService.auto_adjust_columns(ws)

        detail = wb.create_sheet("Payments")
        headers = ['Date', 'Confirmation', 'Student Number', 'Student Name', 'Fee', 'Method', 'Amount', 'Refunded']
        ExcelExportService.style_header_row(detail, 1, headers)
        for row_num, payment in enumerate(payments, start=2):
            student = payment.student_fee.student if payment.student_fee else None
            detail.cell(row=row_num, column=1, value=payment.payment_date.isoformat() if payment.payment_date else None)
            detail.cell(row=row_num, column=2, value=payment.confirmation_number)
            detail.cell(row=row_num, column=3, value=student.student_number if student else None)
            detail.cell(row=row_num, column=4, value=student.full_name if student else None)
            detail.cell(row=row_num, column=5, value=payment.student_fee.fee.fee_name if payment.student_fee else None)
            detail.cell(row=row_num, column=6, value=payment.payment_method)
            ExcelExportService.set_currency(detail.cell(row=row_num, column=7), payment.amount)
            detail.cell(row=row_num, column=8, value='Yes' if payment.refunded else 'No')
        ExcelExportService.auto_adjust_columns(detail)

        return ExcelExportService.workbook_to_bytes(wb)

    @staticmethod
    def workbook_to_bytes(workbook):
        """Convert workbook to bytes for download"""
        output = BytesIO()
        workbook.save(output)
        output.seek(0)
        return output.getvalue()
