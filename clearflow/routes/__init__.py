"""
Routes package initialization
"""

from clearflow.routes.student_routes import student_bp
from clearflow.routes.department_routes import department_bp
from clearflow.routes.clearance_routes import clearance_bp
from clearflow.routes.report_routes import report_bp

__all__ = ['student_bp', 'department_bp', 'clearance_bp', 'report_bp']
