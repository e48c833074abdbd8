"""
Database initialization and connection utilities
"""

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError

db = SQLAlchemy()


def init_db() -> None:
    """Create all tables that do not exist yet. Needs an app context."""
    from flask import current_app

    try:
        db.create_all()
        current_app.logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        current_app.logger.warning(f"Database initialization warning: {e}")
