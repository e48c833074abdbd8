"""
Reporting routes
"""

from flask import Blueprint, request, jsonify
from clearflow.services import AuthService, StatisticsService
from clearflow.utils import (
    ValidationError, AuthenticationError, AuthorizationError, log_error, create_response
)

report_bp = Blueprint('report', __name__)


@report_bp.route('/performance', methods=['GET'])
def performance_report():
    """Department performance for records created between ?start= and ?end="""
    try:
        AuthService.require_role('admin')
        report = StatisticsService.get_performance_report(request.args.get('start'), request.args.get('end'))
        return jsonify(create_response(True, "Performance report generated", report))

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Performance report error", e)
        return jsonify(create_response(False, "Failed to generate report")), 500


@report_bp.route('/summary', methods=['GET'])
def status_summary():
    """Clearance counts per overall status for records created between ?start= and ?end="""
    try:
        AuthService.require_role('admin')
        summary = StatisticsService.get_status_summary(request.args.get('start'), request.args.get('end'))
        return jsonify(create_response(True, "Status summary generated", summary))

    except ValidationError as e:
        return jsonify(create_response(False, str(e))), 400
    except AuthenticationError as e:
        return jsonify(create_response(False, str(e))), 401
    except AuthorizationError as e:
        return jsonify(create_response(False, str(e))), 403
    except Exception as e:
        log_error("Status summary error", e)
        return jsonify(create_response(False, "Failed to generate summary")), 500
