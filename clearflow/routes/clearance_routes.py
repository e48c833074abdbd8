"""
Department decision routes
"""

from flask import Blueprint, request, jsonify
from clearflow.services import AuthService, ClearanceService
from clearflow.utils import (
    ValidationError, NotFoundError, ConflictError, AuthenticationError, AuthorizationError,
    log_error, create_response
)

clearance_bp = Blueprint('clearance', __name__)


def _target_department(record_id: int, data: dict) -> int:
    """Department that a decision request addresses, used for the permission check"""
    target = ClearanceService.find_decision(
        record_id, data.get('department'), data.get('department_id'), data.get('decision_id')
    )
    return target.department_id


@clearance_bp.route('/<int:record_id>/decisions', methods=['POST'])
def record_decision(record_id: int):
    """Approve or reject a clearance on behalf of one department"""
    try:
        AuthService.require_role('officer', 'admin')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400

        decision = data.get('decision')
        department_id = _target_department(record_id, data)
        permission = 'reject' if decision == 'rejected' else 'approve'
        user = AuthService.require_department_permission(department_id, permission)

        record = ClearanceService.record_decision(
            record_id,
            data.get('department'),
            decision,
            user['id'],
            data.get('remarks'),
            department_id=data.get('department_id'),
            decision_id=data.get('decision_id')
        )
        return jsonify(create_response(True, f"Clearance {decision}", record.to_dict()))

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
        log_error("Record decision error", e)
        return jsonify(create_response(False, "Failed to record decision")), 500


@clearance_bp.route('/<int:record_id>/override', methods=['POST'])
def override_decision(record_id: int):
    """Administrator override of a department decision"""
    try:
        user = AuthService.require_role('admin')

        data = request.get_json(silent=True)
        if not data:
            return jsonify(create_response(False, "No data provided")), 400

        record = ClearanceService.override_decision(
            record_id,
            data.get('department'),
            data.get('decision'),
            user['id'],
            data.get('remarks'),
            department_id=data.get('department_id'),
            decision_id=data.get('decision_id')
        )
        return jsonify(create_response(True, "Decision overridden", record.to_dict(include_timeline=True)))

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
        log_error("Override decision error", e)
        return jsonify(create_response(False, "Failed to override decision")), 500
