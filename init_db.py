#!/usr/bin/env python3
"""
Create the Brookfield SIS tables, or drop and recreate them

    python init_db.py            create missing tables
    python init_db.py --reset    drop everything first (asks to confirm)
"""

import argparse
import logging

from app import create_app
from config import Config
from database import init_db, reset_database

logger = logging.getLogger(__name__)

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Initialize the school information system database")
    parser.add_argument('--reset', action='store_true', help="drop all tables before creating them")
    parser.add_argument('--yes', action='store_true', help="skip the reset confirmation prompt")
    return parser.parse_args(argv)

def main(argv=None):
    args = parse_args(argv)
    app = create_app(Config)

    if not args.reset:
        init_db(app)
        return

    if not args.yes:
        answer = input(f"Drop all data in {app.config['SQLALCHEMY_DATABASE_URI']}? (yes/no): ")
        if answer.strip().lower() != 'yes':
            logger.info("Database reset cancelled")
            return
    reset_database(app)

if __name__ == '__main__':
    main()
