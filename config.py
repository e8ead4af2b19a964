"""
Configuration settings for Brookfield School Information System
"""

import os

class Config:
    """Base configuration class"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'brookfield-sis-secret-key'
    JSON_SORT_KEYS = False

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///brookfield_sis.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(message)s'

    # Health office
    FEVER_THRESHOLD_F = 100.4
    FREQUENT_VISIT_MINIMUM = 3

    # Immunizations
    IMMUNIZATION_DUE_SOON_DAYS = 30

    # Behavior
    CRITICAL_INCIDENT_DAYS_BACK = 30

    # Attendance
    TRUANCY_THRESHOLD = 10
    CHRONIC_ABSENCE_RATE = 10.0  # percent of records absent

    # Cafeteria
    LOW_BALANCE_THRESHOLD = 5.0
    MEAL_PLAN_WEEKS = 40
    CAFETERIA_YEAR_START_MONTH = 7

    # Fees
    FEE_YEAR_START_MONTH = 8

    # Scheduling
    PERIODS_PER_DAY = 8
    MAX_PERIODS_PER_DAY = 8

class TestingConfig(Config):
    """Configuration used by the unit tests"""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOG_LEVEL = 'WARNING'
