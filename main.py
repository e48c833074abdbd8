"""
Main application entry point
Runs the Clearflow development server
"""

import os
import sys

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clearflow import create_app
from clearflow.models import db
from clearflow.utils import log_info, log_error


def main():
    """Main application entry point"""
    app = create_app()

    # Test database connection
    with app.app_context():
        try:
            db.session.execute(text('SELECT 1'))
            log_info("Database connection available")
        except SQLAlchemyError as e:
            log_error("Database connection error", e)
            return False

    debug_mode = os.environ.get('FLASK_DEBUG', 'True').lower() in ['true', '1', 'on']
    port = int(os.environ.get('PORT', 5000))
    app.logger.info(f"Starting server on http://localhost:{port} (debug {'on' if debug_mode else 'off'})")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=debug_mode
    )
    return True


if __name__ == '__main__':
    success = main()
    if not success:
        sys.exit(1)
