"""
Validation utilities for Brookfield School Information System
"""

import math
import re
from datetime import datetime, date, time

def validate_student_number(student_number):
    """Validate student number format"""
    if not student_number or len(str(student_number).strip()) == 0:
        return False, "Student number is required"

    if not isinstance(student_number, str):
        return False, "Student number must be text"

    if len(student_number) > 20:
        return False, "Student number must be 20 characters or less"

    # Allow alphanumeric and some special characters
    if not re.match(r'^[A-Za-z0-9_-]+$', student_number):
        return False, "Student number can only contain letters, numbers, hyphens, and underscores"

    return True, "Valid student number"

def validate_name(name, field_name="Name"):
    """Validate person name"""
    if not name or len(str(name).strip()) == 0:
        return False, f"{field_name} is required"

    if not isinstance(name, str):
        return False, f"{field_name} must be text"

    if len(name) > 100:
        return False, f"{field_name} must be 100 characters or less"

    # Allow letters, spaces, and common name characters
    if not re.match(r"^[A-Za-z\s\.\-']+$", name):
        return False, f"{field_name} can only contain letters, spaces, periods, hyphens, and apostrophes"

    return True, f"Valid {field_name.lower()}"

def validate_phone(phone):
    """Validate phone number: 10 to 15 digits after stripping punctuation"""
    if not phone:
        return False, "Phone number is required"

    digits = re.sub(r'[\s\-\(\)\.\+]', '', str(phone))
    if not digits.isdigit() or not 10 <= len(digits) <= 15:
        return False, "Phone number must contain 10 to 15 digits"

    return True, "Valid phone number"

def validate_grade_level(grade_level):
    """Grade levels run from 0 (kindergarten) to 12"""
    try:
        value = int(grade_level)
    except (TypeError, ValueError):
        return False, "Grade level must be a number"

    if value < 0 or value > 12:
        return False, "Grade level must be between 0 and 12"

    return True, "Valid grade level"

def ensure(result):
    """Raise ValueError for a failed (valid, message) validator result"""
    valid, message = result
    if not valid:
        raise ValueError(message)
    return True

def require_fields(data, *fields):
    """Raise ValueError naming the first missing field"""
    for field in fields:
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(f"{field} is required")

def parse_str(value, field, required=True, max_length=None):
    """Strip a text field; non-string JSON values are rejected"""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValueError(f"{field} is required")
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be text")
    value = value.strip()
    if max_length is not None and len(value) > max_length:
        raise ValueError(f"{field} must be {max_length} characters or less")
    return value

def parse_date(value, field='date', required=True):
    """Parse an ISO date (YYYY-MM-DD)"""
    if value is None or value == '':
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    for fmt in ('%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%d %H:%M:%S'):
        try:
            return datetime.strptime(str(value).strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"{field} must be a date in YYYY-MM-DD format")

def parse_time(value, field='time', required=True):
    """Parse HH:MM or HH:MM:SS"""
    if value is None or value == '':
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, time):
        return value
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(str(value), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"{field} must be a time in HH:MM format")

def parse_int(value, field, required=True, minimum=None, maximum=None):
    """Parse an integer with optional bounds"""
    if value is None or value == '':
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(f"{field} must be a whole number")
    if minimum is not None and number < minimum:
        raise ValueError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValueError(f"{field} must be at most {maximum}")
    return number

def parse_float(value, field, required=True, minimum=None):
    """Parse a number"""
    if value is None or value == '':
        if required:
            raise ValueError(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number")
    if not math.isfinite(number):
        raise ValueError(f"{field} must be a finite number")
    if minimum is not None and number < minimum:
        raise ValueError(f"{field} must be at least {minimum}")
    return number

def parse_amount(value, field='amount', required=True, allow_zero=True):
    """Parse a money amount rounded to cents"""
    amount = parse_float(value, field, required=required, minimum=0)
    if amount is None:
        return None
    if not allow_zero and amount == 0:
        raise ValueError(f"{field} must be greater than zero")
    return round(amount, 2)

def parse_enum(value, choices, field, required=True, default=None):
    """Upper-case a string and check it against the allowed choices"""
    if value is None or value == '':
        if required:
            raise ValueError(f"{field} is required")
        return default
    normalized = str(value).strip().upper()
    if normalized not in choices:
        raise ValueError(f"{field} must be one of: {', '.join(choices)}")
    return normalized

def parse_bool(value, default=False):
    """Interpret JSON booleans and query-string flags"""
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')

def parse_date_range(args, start_field='start_date', end_field='end_date'):
    """Parse and order-check a start/end date pair"""
    start_date = parse_date(args.get(start_field), start_field)
    end_date = parse_date(args.get(end_field), end_field)
    if end_date < start_date:
        raise ValueError(f"{end_field} must be on or after {start_field}")
    return start_date, end_date

def parse_id_list(values, field):
    """Parse a list of integer ids"""
    if not isinstance(values, list) or not values:
        raise ValueError(f"{field} must be a non-empty list")
    return [parse_int(v, field) for v in values]
