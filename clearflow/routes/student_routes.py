"""
Student routes
"""

from flask import Blueprint, request, jsonify
from clearflow.services import AuthService, ClearanceService, NotificationService
from clearflow.utils import (
    ValidationError, NotFoundError, AuthenticationError, AuthorizationError,
    log_error, create_response
)

student_bp = Blueprint('student', __name__)


@student_bp.route('/clearances', methods=['POST'])
def create_clearance():
    """Submit a clearance request"""
    try:
        user = AuthService.require_role('student')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400

        record = ClearanceService.create_record(
            user['id'],
            data.get('departments'),
            clearance_type=data.get('clearance_type', 'graduation'),
            academic_session=data.get('academic_session')
        )
        return jsonify(create_response(True, "Clearance application submitted", record.to_dict())), 201

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Create clearance error", e)
        return jsonify(create_response(False, "Failed to submit clearance application")), 500


@student_bp.route('/clearances', methods=['GET'])
def list_clearances():
    """Get the student's clearance records"""
    try:
        user = AuthService.require_role('student')
        records = ClearanceService.get_records_for_student(user['id'])
        return jsonify(create_response(True, "Clearances retrieved", [r.to_dict() for r in records]))

    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("List clearances error", e)
        return jsonify(create_response(False, "Failed to get clearances")), 500


@student_bp.route('/clearances/<int:record_id>', methods=['GET'])
def get_clearance(record_id: int):
    """Get one of the student's clearance records with its timeline"""
    try:
        user = AuthService.require_role('student')
        record = ClearanceService.get_record(record_id)
        if record.student_id != user['id']:
            # Other students' records are reported as missing
            raise NotFoundError("Clearance record", record_id)
        return jsonify(create_response(True, "Clearance retrieved", record.to_dict(include_timeline=True)))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Get clearance error", e)
        return jsonify(create_response(False, "Failed to get clearance")), 500


@student_bp.route('/dashboard', methods=['GET'])
def get_dashboard():
    """Get the student's clearance dashboard"""
    try:
        user = AuthService.require_role('student')
        dashboard = ClearanceService.get_student_dashboard(user['id'])
        return jsonify(create_response(True, "Dashboard retrieved", dashboard))

    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Get dashboard error", e)
        return jsonify(create_response(False, "Failed to get dashboard")), 500


@student_bp.route('/notifications', methods=['GET'])
def get_notifications():
    """Get student notifications"""
    try:
        user = AuthService.require_role('student')
        unread_only = request.args.get('unread', '').lower() in ['true', '1', 'yes']
        notifications = NotificationService.list_for_student(user['id'], unread_only=unread_only)
        return jsonify(create_response(True, "Notifications retrieved", [n.to_dict() for n in notifications]))

    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Get notifications error", e)
        return jsonify(create_response(False, "Failed to get notifications")), 500


@student_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
def mark_notification_read(notification_id: int):
    """Mark a notification as read"""
    try:
        user = AuthService.require_role('student')
        notification = NotificationService.mark_read(notification_id, user['id'])
        return jsonify(create_response(True, "Notification marked as read", notification.to_dict()))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Mark notification error", e)
        return jsonify(create_response(False, "Failed to update notification")), 500
