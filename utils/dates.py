"""
Date helpers for Brookfield School Information System
"""

import calendar
from datetime import date

def add_months(day, months):
    """Shift a date by whole months, clamping to the last day of the target month"""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))

def add_years(day, years):
    return add_months(day, years * 12)

def school_year_label(today=None, start_month=8):
    """Year label such as "2024-2025"; the school year starts in start_month"""
    today = today or date.today()
    start_year = today.year if today.month >= start_month else today.year - 1
    return f"{start_year}-{start_year + 1}"

def school_year_end(label):
    """June 30 of the second year of a "YYYY-YYYY" label"""
    try:
        end_year = int(label.split('-')[1])
    except (AttributeError, IndexError, ValueError):
        raise ValueError(f"Invalid academic year label: {label}")
    return date(end_year, 6, 30)
