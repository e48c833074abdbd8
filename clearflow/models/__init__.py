"""
Database models initialization
"""

from clearflow.models.database import db, init_db
from clearflow.models.department import Department, DepartmentRequirement, DepartmentOfficer
from clearflow.models.clearance import (
    ClearanceRecord, DepartmentDecision, TimelineEntry, Notification
)

# Export all models
__all__ = [
    'db', 'init_db', 'Department', 'DepartmentRequirement', 'DepartmentOfficer',
    'ClearanceRecord', 'DepartmentDecision', 'TimelineEntry', 'Notification'
]
