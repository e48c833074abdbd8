"""
Services package initialization
"""

from clearflow.services.events import EventBus
from clearflow.services.repository import ClearanceRepository
from clearflow.services.department_service import DepartmentService
from clearflow.services.clearance_service import ClearanceService, derive_overall_status
from clearflow.services.statistics_service import StatisticsService
from clearflow.services.notification_service import NotificationService
from clearflow.services.auth_service import AuthService

__all__ = [
    'EventBus', 'ClearanceRepository', 'DepartmentService', 'ClearanceService',
    'derive_overall_status', 'StatisticsService', 'NotificationService', 'AuthService'
]
