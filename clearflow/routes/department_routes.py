"""
Department routes
"""

from flask import Blueprint, request, jsonify
from clearflow.services import AuthService, DepartmentService, ClearanceService, StatisticsService
from clearflow.utils import (
    ValidationError, NotFoundError, ConflictError, AuthenticationError, AuthorizationError,
    log_error, create_response, utcnow, elapsed_days
)

department_bp = Blueprint('department', __name__)


@department_bp.route('', methods=['GET'])
def list_departments():
    """List active departments a student can apply to"""
    try:
        AuthService.require_auth()
        departments = DepartmentService.list_active_departments()
        return jsonify(create_response(True, "Departments retrieved", [d.to_dict() for d in departments]))

    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except Exception as e:
        log_error("List departments error", e)
        return jsonify(create_response(False, "Failed to get departments")), 500


@department_bp.route('/<int:department_id>', methods=['GET'])
def get_department(department_id: int):
    """Get a department; administrators also see the officer roster"""
    try:
        user = AuthService.require_auth()
        department = DepartmentService.get_department(department_id)
        data = department.to_dict(include_officers=user['role'] == 'admin')
        return jsonify(create_response(True, "Department retrieved", data))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except Exception as e:
        log_error("Get department error", e)
        return jsonify(create_response(False, "Failed to get department")), 500


@department_bp.route('', methods=['POST'])
def create_department():
    """Register a department"""
    try:
        AuthService.require_role('admin')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400

        settings = data.get('settings') or {}
        contact = data.get('contact') or {}
        if not isinstance(settings, dict) or not isinstance(contact, dict):
            raise ValidationError("settings and contact must be objects")
        department = DepartmentService.create_department(
            data.get('name'),
            data.get('code'),
            data.get('faculty'),
            description=data.get('description'),
            requirements=data.get('requirements'),
            contact_email=contact.get('email'),
            contact_phone=contact.get('phone'),
            office=contact.get('office'),
            **settings
        )
        return jsonify(create_response(True, "Department created", department.to_dict())), 201

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except ConflictError as e:
        return jsonify(create_response(False, str(e))), 409
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Create department error", e)
        return jsonify(create_response(False, "Failed to create department")), 500


@department_bp.route('/<int:department_id>/settings', methods=['PATCH'])
def update_settings(department_id: int):
    """Update department settings"""
    try:
        AuthService.require_role('admin')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400

        department = DepartmentService.update_settings(department_id, **data)
        return jsonify(create_response(True, "Settings updated", department.settings))

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Update settings error", e)
        return jsonify(create_response(False, "Failed to update settings")), 500


@department_bp.route('/<int:department_id>/officers', methods=['POST'])
def add_officer(department_id: int):
    """Assign an officer to a department"""
    try:
        AuthService.require_role('admin')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400
        if not isinstance(data.get('user_id'), int) or isinstance(data.get('user_id'), bool):
            raise ValidationError("user_id must be an integer")

        officer = DepartmentService.add_officer(
            department_id,
            data['user_id'],
            role=data.get('role', 'officer'),
            permissions=data.get('permissions')
        )
        return jsonify(create_response(True, "Officer added", officer.to_dict())), 201

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except ConflictError as e:
        return jsonify(create_response(False, str(e))), 409
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Add officer error", e)
        return jsonify(create_response(False, "Failed to add officer")), 500


@department_bp.route('/<int:department_id>/officers/<int:user_id>', methods=['DELETE'])
def remove_officer(department_id: int, user_id: int):
    """Deactivate an officer"""
    try:
        AuthService.require_role('admin')
        officer = DepartmentService.remove_officer(department_id, user_id)
        return jsonify(create_response(True, "Officer removed", officer.to_dict()))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Remove officer error", e)
        return jsonify(create_response(False, "Failed to remove officer")), 500


@department_bp.route('/<int:department_id>/clearances', methods=['GET'])
def department_clearances(department_id: int):
    """Clearances addressed to a department, e.g. ?status=pending for the approval queue"""
    try:
        AuthService.require_department_permission(department_id, 'view')
        records = ClearanceService.get_records_for_department(
            department_id, request.args.get('status') or None
        )
        return jsonify(create_response(True, "Clearances retrieved", [r.to_dict() for r in records]))

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Department clearances error", e)
        return jsonify(create_response(False, "Failed to get clearances")), 500


@department_bp.route('/<int:department_id>/overdue', methods=['GET'])
def overdue_decisions(department_id: int):
    """Pending decisions past the department's processing target"""
    try:
        AuthService.require_department_permission(department_id, 'view')
        now = utcnow()
        decisions = ClearanceService.get_overdue_decisions(department_id, now=now)
        data = []
        for decision in decisions:
            item = decision.to_dict()
            item['record_id'] = decision.record_id
            item['application_number'] = decision.record.application_number
            item['days_pending'] = round(elapsed_days(decision.created_at, now), 2)
            data.append(item)
        return jsonify(create_response(True, "Overdue decisions retrieved", data))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Overdue decisions error", e)
        return jsonify(create_response(False, "Failed to get overdue decisions")), 500


@department_bp.route('/<int:department_id>/statistics/recompute', methods=['POST'])
def recompute_statistics(department_id: int):
    """Refresh the cached department statistics"""
    try:
        AuthService.require_department_permission(department_id, 'edit')
        statistics = StatisticsService.recompute_department_statistics(department_id)
        return jsonify(create_response(True, "Statistics updated", statistics))

    except NotFoundError as e:
        return jsonify(create_response(False, str(e))), 404
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Recompute statistics error", e)
        return jsonify(create_response(False, "Failed to update statistics")), 500
