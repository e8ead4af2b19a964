"""
Reporting service for Brookfield School Information System
PDF fee statements and immunization compliance reports
"""

from io import BytesIO
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from xml.sax.saxutils import escape as xml_escape

from models.immunization import VACCINE_TYPES
from services.fee_service import FeeService
from services.immunization_service import ImmunizationService

SCHOOL_NAME = 'Brookfield School District'
MARGIN = 18 * mm
PAGE_WIDTH = A4[0] - 2 * MARGIN

class ReportingService:
    """Service for generating PDF reports"""

    @staticmethod
    def _format_number(value):
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
    def _money(value):
        return f"{float(value or 0):,.2f}"

    @staticmethod
    def _get_paragraph_style():
        """Return a compact cell Paragraph style to enable auto word-wrap in table cells."""
        styles = getSampleStyleSheet()
        return ParagraphStyle(
            'Cell',
            parent=styles['Normal'],
            fontSize=9,
            leading=11,
            spaceAfter=0,
            spaceBefore=0,
        )

    @staticmethod
    def _get_header_paragraph_style():
        styles = getSampleStyleSheet()
        return ParagraphStyle(
            'HeaderCell',
            parent=styles['Normal'],
            fontSize=9,
            leading=11,
            textColor=colors.white,
            spaceAfter=0,
            spaceBefore=0,
        )

    @staticmethod
    def _to_paragraph(value):
        """Convert any value to a Paragraph so ReportLab wraps text within cell width."""
        if value is None:
            return Paragraph('', ReportingService._get_paragraph_style())
        # escape text but keep explicit line breaks
        text = xml_escape(str(value)).replace('\n', '<br/>')
        return Paragraph(text, ReportingService._get_paragraph_style())

    @staticmethod
    def _wrap_table_data(rows, skip_header=True, header_text_white=False, no_wrap_cols=None):
        """Map table cells to Paragraphs for word-wrap.
        If skip_header=True, the first row is left as-is so TableStyle header
        text color/background rules still apply.
        """
        if not rows:
            return rows
        no_wrap_set = set(no_wrap_cols or [])
        start_idx = 1 if skip_header and len(rows) > 0 else 0
        wrapped_rows = []
        if start_idx == 1:
            if header_text_white:
                wrapped_rows.append([Paragraph(xml_escape(str(c)), ReportingService._get_header_paragraph_style())
                                     for c in rows[0]])
            else:
                wrapped_rows.append(rows[0])
        for row in rows[start_idx:]:
            wrapped = []
            for idx, cell in enumerate(row):
                if idx in no_wrap_set:
                    wrapped.append(xml_escape(str(cell)) if cell is not None else '')
                else:
                    wrapped.append(ReportingService._to_paragraph(cell))
            wrapped_rows.append(wrapped)
        return wrapped_rows

    @staticmethod
    def _calc_colwidths_from_fracs(total_width, fracs):
        safe_fracs = fracs or []
        s = float(sum(safe_fracs)) or 1.0
        normalized = [f / s for f in safe_fracs]
        return [total_width * f for f in normalized]

    @staticmethod
    def _build_table(rows, page_width, col_fracs, *, no_wrap_cols=None, center_cols=None, header_bg=colors.black):
        """Build a standardized table with consistent styling across PDFs.
        - rows: 2D list with header at index 0
        - col_fracs: fractions for each column width
        - no_wrap_cols: set of indices that must not wrap
        - center_cols: set of indices to center-align in body
        """
        wrapped = ReportingService._wrap_table_data(rows, skip_header=True, header_text_white=True,
                                                    no_wrap_cols=no_wrap_cols or set())
        colwidths = ReportingService._calc_colwidths_from_fracs(page_width, col_fracs)
        tbl = Table(wrapped, repeatRows=1, colWidths=colwidths)
        base_style = [
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('BACKGROUND', (0, 0), (-1, 0), header_bg),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('LEFTPADDING', (0, 1), (-1, -1), 3),
            ('RIGHTPADDING', (0, 1), (-1, -1), 3),
            ('TOPPADDING', (0, 1), (-1, -1), 2),
            ('BOTTOMPADDING', (0, 1), (-1, -1), 2),
        ]
        for idx in center_cols or ():
            base_style.append(('ALIGN', (idx, 1), (idx, -1), 'CENTER'))
        tbl.setStyle(TableStyle(base_style))
        return tbl

    @staticmethod
    def _info_table(rows):
        table = Table(rows, colWidths=[45 * mm, PAGE_WIDTH - 45 * mm])
        table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.5, colors.grey),
            ('INNERGRID', (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]))
        return table

    @staticmethod
    def _start_document(title):
        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=MARGIN, rightMargin=MARGIN,
                                topMargin=MARGIN, bottomMargin=MARGIN, title=title)
        styles = getSampleStyleSheet()
        header_title = ParagraphStyle('HeaderTitle', parent=styles['Title'], alignment=0, fontSize=16, leading=19)
        title_center = ParagraphStyle('TitleCenter', parent=styles['Title'], alignment=1)
        elements = [
            Paragraph(SCHOOL_NAME, header_title),
            Spacer(1, 6),
            Paragraph(xml_escape(title), title_center),
            Spacer(1, 8),
        ]
        return buffer, doc, elements, styles

    @staticmethod
    def _finish_document(buffer, doc, elements):
        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    @staticmethod
    def generate_fee_statement_pdf(student_id, academic_year=None):
        """Fee statement for a student: assigned fees, payments and totals"""
        statement = FeeService.get_student_statement(student_id, academic_year)
        buffer, doc, elements, styles = ReportingService._start_document('Student Fee Statement')

        elements.append(ReportingService._info_table([
            ['Student', statement['student_name']],
            ['Student Number', statement['student_number']],
            ['Academic Year', statement['academic_year'] or 'All years'],
            ['Statement Date', statement['generated_date']],
        ]))
        elements.append(Spacer(1, 12))

        elements.append(Paragraph('Fees', styles['Heading2']))
        fee_rows = [['Fee', 'Type', 'Due Date', 'Amount Due', 'Paid', 'Waived', 'Balance', 'Status']]
        for fee in statement['fees']:
            fee_rows.append([
                fee['fee_name'], fee['fee_type'], fee['due_date'] or '',
                ReportingService._money(fee['amount_due']), ReportingService._money(fee['amount_paid']),
                ReportingService._money(fee['amount_waived']), ReportingService._money(fee['balance']),
                fee['status'],
            ])
        if len(fee_rows) == 1:
            fee_rows.append(['No fees assigned'] + [''] * 7)
        elements.append(ReportingService._build_table(
            fee_rows, PAGE_WIDTH, [0.22, 0.12, 0.12, 0.11, 0.1, 0.1, 0.11, 0.12],
            no_wrap_cols={2}, center_cols={3, 4, 5, 6}))
        elements.append(Spacer(1, 12))

        elements.append(Paragraph('Payments', styles['Heading2']))
        payment_rows = [['Date', 'Confirmation', 'Fee', 'Method', 'Amount', 'Refunded']]
        for payment in statement['payments']:
            payment_rows.append([
                payment['payment_date'] or '', payment['confirmation_number'], payment['fee_name'],
                payment['payment_method'], ReportingService._money(payment['amount']),
                'Yes' if payment['refunded'] else 'No',
            ])
        if len(payment_rows) == 1:
            payment_rows.append(['No payments recorded'] + [''] * 5)
        elements.append(ReportingService._build_table(
            payment_rows, PAGE_WIDTH, [0.14, 0.24, 0.24, 0.14, 0.12, 0.12],
            no_wrap_cols={0, 1}, center_cols={4, 5}))
        elements.append(Spacer(1, 12))

        elements.append(ReportingService._info_table([
            ['Total Due', ReportingService._money(statement['total_due'])],
            ['Total Paid', ReportingService._money(statement['total_paid'])],
            ['Total Waived', ReportingService._money(statement['total_waived'])],
            ['Outstanding Balance', ReportingService._money(statement['outstanding_balance'])],
        ]))
        return ReportingService._finish_document(buffer, doc, elements)

    @staticmethod
    def generate_immunization_compliance_pdf(student_id):
        compliance = ImmunizationService.check_compliance(student_id)
        records = ImmunizationService.get_student_immunizations(student_id)
        buffer, doc, elements, styles = ReportingService._start_document('Immunization Compliance Report')

        elements.append(ReportingService._info_table([
            ['Student', compliance['student_name']],
            ['Compliance Status', 'COMPLIANT' if compliance['compliant'] else 'NOT COMPLIANT'],
            ['Missing Vaccines', ', '.join(compliance['missing_vaccines']) or 'None'],
            ['Checked', compliance['checked_date']],
        ]))
        elements.append(Spacer(1, 12))

        elements.append(Paragraph('Required Vaccines', styles['Heading2']))
        rows = [['Vaccine', 'Status', 'Doses', 'Next Dose Due']]
        for vaccine_type, entry in compliance['vaccine_compliance'].items():
            doses = entry.get('doses_received')
            rows.append([
                VACCINE_TYPES.get(vaccine_type, (vaccine_type,))[0],
                entry['status'],
                f"{doses}/{entry['doses_required']}" if doses is not None else '',
                entry.get('next_dose_due') or '',
            ])
        elements.append(ReportingService._build_table(rows, PAGE_WIDTH, [0.34, 0.36, 0.12, 0.18],
                                                      no_wrap_cols={2, 3}, center_cols={2, 3}))
        elements.append(Spacer(1, 12))

        elements.append(Paragraph('Immunization History', styles['Heading2']))
        history = [['Vaccine', 'Dose', 'Date', 'Provider', 'Verified']]
        for record in records:
            history.append([
                VACCINE_TYPES.get(record.vaccine_type, (record.vaccine_type,))[0],
                'Exemption' if record.is_exemption() else ReportingService._format_number(record.dose_number),
                record.administration_date.isoformat() if record.administration_date else '',
                record.provider or '',
                'Yes' if record.verified else 'No',
            ])
        if len(history) == 1:
            history.append(['No immunizations recorded'] + [''] * 4)
        elements.append(ReportingService._build_table(history, PAGE_WIDTH, [0.34, 0.12, 0.16, 0.26, 0.12],
                                                      no_wrap_cols={2}, center_cols={1, 2, 4}))
        return ReportingService._finish_document(buffer, doc, elements)
