"""
Aggregation and reporting over clearance records
"""

from typing import Any, Dict, List
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from clearflow.models import db, ClearanceRecord, DepartmentDecision, Department
from clearflow.models.clearance import OVERALL_STATUSES, TERMINAL_STATUSES
from clearflow.services.department_service import DepartmentService
from clearflow.utils.exceptions import ValidationError, DatabaseError
from clearflow.utils.validators import parse_date_bound
from clearflow.utils.helpers import log_info, utcnow, elapsed_days


def _decimals() -> int:
    return current_app.config.get('STATISTICS_DECIMALS', 2)


def _mean_days(pairs, decimals: int) -> float:
    durations = [elapsed_days(start, end) for start, end in pairs if start and end]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), decimals)


def _report_range(start_date: Any, end_date: Any):
    start = parse_date_bound(start_date, 'Start date')
    end = parse_date_bound(end_date, 'End date', end_of_day=True)
    if start > end:
        raise ValidationError("Start date must not be after end date")
    return start, end


class StatisticsService:
    """Department statistics and performance reports"""

    @staticmethod
    def recompute_department_statistics(department_id: int) -> Dict[str, Any]:
        """
        Refresh the cached statistics of a department

        Only approved and rejected decisions count; pending ones are ignored.
        Processing time is approved_at - created_at in days. This is the only
        code path that writes department statistics. On failure the cached
        values stay as they were.

        Raises:
            NotFoundError: If the department does not exist
            DatabaseError: If reading or saving fails
        """
        department = DepartmentService.get_department(department_id)
        decimals = _decimals()

        try:
            decisions = DepartmentDecision.query.filter(
                DepartmentDecision.department_id == department_id,
                DepartmentDecision.status.in_(TERMINAL_STATUSES)
            ).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to read decisions: {str(e)}")

        total_approved = sum(1 for d in decisions if d.status == 'approved')
        total_rejected = sum(1 for d in decisions if d.status == 'rejected')
        average = _mean_days(((d.created_at, d.approved_at) for d in decisions), decimals)

        try:
            department.total_processed = total_approved + total_rejected
            department.total_approved = total_approved
            department.total_rejected = total_rejected
            department.average_processing_time = average
            department.statistics_updated_at = utcnow()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to save department statistics: {str(e)}")

        log_info(f"Statistics refreshed for department {department.code}: "
                 f"{department.total_processed} processed")
        return department.statistics

    @staticmethod
    def recompute_all_statistics() -> int:
        """Refresh every department; returns how many were refreshed"""
        department_ids = [d.id for d in Department.query.order_by(Department.id).all()]
        for department_id in department_ids:
            StatisticsService.recompute_department_statistics(department_id)
        return len(department_ids)

    @staticmethod
    def get_performance_report(start_date: Any, end_date: Any) -> List[Dict[str, Any]]:
        """
        Per-department performance over records created in [start_date, end_date]

        Every active department is listed, with zeros when it received no
        request in range. Sorted by approval rate, highest first, then by
        department name.
        """
        start, end = _report_range(start_date, end_date)
        decimals = _decimals()

        try:
            rows = db.session.query(DepartmentDecision) \
                .join(ClearanceRecord, DepartmentDecision.record_id == ClearanceRecord.id) \
                .filter(ClearanceRecord.created_at >= start, ClearanceRecord.created_at <= end) \
                .all()
            active = DepartmentService.list_active_departments()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to build performance report: {str(e)}")

        groups: Dict[int, Dict[str, Any]] = {}
        for department in active:
            groups[department.id] = {'name': department.name, 'decisions': []}
        for decision in rows:
            group = groups.setdefault(decision.department_id,
                                      {'name': decision.department_name, 'decisions': []})
            group['decisions'].append(decision)

        report = []
        for department_id, group in groups.items():
            decisions = group['decisions']
            total = len(decisions)
            approved = sum(1 for d in decisions if d.status == 'approved')
            rejected = sum(1 for d in decisions if d.status == 'rejected')
            terminal = [d for d in decisions if d.status in TERMINAL_STATUSES]
            report.append({
                'department_id': department_id,
                'department_name': group['name'],
                'total_requests': total,
                'approved': approved,
                'rejected': rejected,
                'pending': total - approved - rejected,
                'average_processing_time': _mean_days(
                    ((d.created_at, d.approved_at) for d in terminal), decimals
                ),
                'approval_rate': round(approved / total * 100, decimals) if total else 0.0
            })

        report.sort(key=lambda row: (-row['approval_rate'], row['department_name']))
        return report

    @staticmethod
    def get_status_summary(start_date: Any, end_date: Any) -> Dict[str, Any]:
        """System-wide record counts per overall status for records created in range"""
        start, end = _report_range(start_date, end_date)

        try:
            records = ClearanceRecord.query.filter(
                ClearanceRecord.created_at >= start, ClearanceRecord.created_at <= end
            ).all()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to build status summary: {str(e)}")

        counts = {status: 0 for status in OVERALL_STATUSES}
        for record in records:
            counts[record.overall_status] += 1

        return {
            'start': start.isoformat(),
            'end': end.isoformat(),
            'total': len(records),
            'by_status': counts,
            'average_completion_time': _mean_days(
                ((r.created_at, r.completed_at) for r in records if r.overall_status == 'approved'),
                _decimals()
            )
        }
