"""
Brookfield School Information System
Main Flask application entry point
"""

import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from config import Config
from database import db, init_db
from utils.responses import error_response

def configure_logging(app):
    """Root logging at the configured level; service modules log through logging.getLogger(__name__)"""
    logging.basicConfig(level=app.config['LOG_LEVEL'], format=app.config['LOG_FORMAT'])
    logging.getLogger().setLevel(app.config['LOG_LEVEL'])

def create_app(config_class=Config):
    """Application factory pattern"""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json.sort_keys = app.config.get('JSON_SORT_KEYS', False)

    configure_logging(app)

    # Initialize extensions with app
    db.init_app(app)

    # Register blueprints
    from routes.students import students_bp
    from routes.academic import academic_bp
    from routes.attendance import attendance_bp
    from routes.behavior import behavior_bp
    from routes.health_office import health_office_bp
    from routes.immunization import immunization_bp
    from routes.fees import fees_bp
    from routes.cafeteria import cafeteria_bp
    from routes.gifted import gifted_bp
    from routes.gradebook import gradebook_bp
    from routes.scheduling import scheduling_bp
    from routes.conflict_analysis import conflict_analysis_bp
    from routes.audit import audit_bp

    app.register_blueprint(students_bp, url_prefix='/api/students')
    app.register_blueprint(academic_bp, url_prefix='/api')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(behavior_bp, url_prefix='/api/behavior-incidents')
    app.register_blueprint(health_office_bp, url_prefix='/api/health-office')
    app.register_blueprint(immunization_bp, url_prefix='/api/immunization')
    app.register_blueprint(fees_bp, url_prefix='/api/fees')
    app.register_blueprint(cafeteria_bp, url_prefix='/api/cafeteria')
    app.register_blueprint(gifted_bp, url_prefix='/api/gifted')
    app.register_blueprint(gradebook_bp, url_prefix='/api/gradebook')
    app.register_blueprint(scheduling_bp, url_prefix='/api/scheduling')
    app.register_blueprint(conflict_analysis_bp, url_prefix='/api/conflict-analysis')
    app.register_blueprint(audit_bp, url_prefix='/api/audit-logs')

    # Unknown routes and wrong methods use the same JSON envelope as the API
    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return error_response(error.description, error.code)

    # Initialize database
    init_db(app)

    return app

if __name__ == '__main__':
    app = create_app()
    app.run(host='0.0.0.0', port=8000, debug=True, use_reloader=False)
