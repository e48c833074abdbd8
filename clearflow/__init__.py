"""
Clearflow Application Factory
Multi-department student clearance service
"""

import os
from flask import Flask
from flask_cors import CORS
from clearflow.config import config
from clearflow.models import db, init_db
from clearflow.routes import student_bp, department_bp, clearance_bp, report_bp
from clearflow.services import EventBus, NotificationService
from clearflow.services.events import EXTENSION_KEY
from clearflow.cli import register_commands
from clearflow.utils import setup_logging, log_info


def create_app(config_name: str = None) -> Flask:
    """
    Application factory

    Args:
        config_name: Configuration name (development, production, testing)

    Returns:
        Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('APP_ENV') or os.environ.get('FLASK_ENV', 'development')

    config_class = config.get(config_name, config['default'])
    app.config.from_object(config_class)
    config_class.init_app(app)

    # Initialize extensions
    db.init_app(app)
    CORS(app)

    # Clearance events and their subscribers
    bus = EventBus()
    NotificationService.register(bus)
    app.extensions[EXTENSION_KEY] = bus

    # Setup logging
    with app.app_context():
        setup_logging()
        log_info("Application initialized")

    # Register blueprints
    app.register_blueprint(student_bp, url_prefix='/api/student')
    app.register_blueprint(department_bp, url_prefix='/api/departments')
    app.register_blueprint(clearance_bp, url_prefix='/api/clearances')
    app.register_blueprint(report_bp, url_prefix='/api/reports')

    register_commands(app)

    # Create database tables
    with app.app_context():
        init_db()

    return app
