"""
In-app notifications driven by clearance events
"""

from typing import Any, Dict, List
from sqlalchemy.exc import SQLAlchemyError
from clearflow.models import db, Notification
from clearflow.services import events
from clearflow.utils.exceptions import NotFoundError, DatabaseError


class NotificationService:
    """Stores student notifications for clearance events"""

    @staticmethod
    def register(bus: events.EventBus) -> None:
        """Subscribe the notification handlers to an event bus"""
        bus.subscribe(events.CLEARANCE_SUBMITTED, NotificationService.on_clearance_submitted)
        bus.subscribe(events.DECISION_RECORDED, NotificationService.on_decision_recorded)
        bus.subscribe(events.CLEARANCE_COMPLETED, NotificationService.on_clearance_completed)
        bus.subscribe(events.CLEARANCE_REJECTED, NotificationService.on_clearance_rejected)

    @staticmethod
    def on_clearance_submitted(payload: Dict[str, Any]) -> None:
        NotificationService._create(
            payload,
            'clearance_submitted',
            "Clearance submitted",
            f"Your clearance application {payload['application_number']} has been submitted."
        )

    @staticmethod
    def on_decision_recorded(payload: Dict[str, Any]) -> None:
        if not payload.get('notification_enabled', True):
            return
        if payload['status'] == 'approved':
            kind, title = 'clearance_approved', f"{payload['department_name']} approved"
        elif payload['status'] == 'rejected':
            kind, title = 'clearance_rejected', f"{payload['department_name']} rejected"
        else:
            return

        message = f"{payload['department_name']} has {payload['status']} your clearance " \
                  f"{payload['application_number']}."
        if payload.get('remarks'):
            message += f" Remarks: {payload['remarks']}"
        NotificationService._create(payload, kind, title, message,
                                    department_id=payload['department_id'])

    @staticmethod
    def on_clearance_completed(payload: Dict[str, Any]) -> None:
        NotificationService._create(
            payload,
            'clearance_completed',
            "Clearance completed",
            f"All departments have approved your clearance {payload['application_number']}."
        )

    @staticmethod
    def on_clearance_rejected(payload: Dict[str, Any]) -> None:
        NotificationService._create(
            payload,
            'clearance_rejected',
            "Clearance rejected",
            f"Your clearance {payload['application_number']} was rejected. "
            f"Review the department remarks and contact the department."
        )

    @staticmethod
    def list_for_student(student_id: int, unread_only: bool = False) -> List[Notification]:
        query = Notification.query.filter_by(recipient_id=student_id)
        if unread_only:
            query = query.filter_by(is_read=False)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    @staticmethod
    def mark_read(notification_id: int, student_id: int) -> Notification:
        notification = Notification.query.filter_by(id=notification_id, recipient_id=student_id).first()
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        notification.is_read = True
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to update notification: {str(e)}")
        return notification

    @staticmethod
    def _create(payload: Dict[str, Any], kind: str, title: str, message: str,
                department_id: int = None) -> Notification:
        notification = Notification(
            recipient_id=payload['student_id'],
            type=kind,
            title=title,
            message=message,
            clearance_id=payload['record_id'],
            department_id=department_id
        )
        try:
            db.session.add(notification)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return notification
