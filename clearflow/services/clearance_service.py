"""
Clearance record engine

Owns the lifecycle of a clearance record: creation, per-department
decisions, overall status derivation and completion detection.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from clearflow.models import db, ClearanceRecord, DepartmentDecision, Department, TimelineEntry, Notification
from clearflow.models.clearance import CLEARANCE_TYPES, DECISION_STATUSES, TERMINAL_STATUSES
from clearflow.services import events
from clearflow.services.department_service import DepartmentService
from clearflow.services.repository import ClearanceRepository
from clearflow.utils.exceptions import (
    ClearflowException, ValidationError, NotFoundError, ConflictError, DatabaseError
)
from clearflow.utils.validators import validate_required, validate_choice, validate_id_list
from clearflow.utils.helpers import log_info, utcnow, to_iso

AUTO_APPROVAL_REMARKS = 'Auto-approved'
APPLICATION_NUMBER_ATTEMPTS = 3


def derive_overall_status(statuses: Iterable[str]) -> str:
    """
    Overall clearance status from the department decision statuses

    A single rejection fails the whole clearance; it is approved only once
    every department approved; any approval short of that is in progress.
    """
    statuses = list(statuses)
    if 'rejected' in statuses:
        return 'rejected'
    if statuses and all(status == 'approved' for status in statuses):
        return 'approved'
    if 'approved' in statuses:
        return 'in_progress'
    return 'pending'


class ClearanceService:
    """Clearance record engine"""

    @staticmethod
    def create_record(student_id: int, department_ids: List[int], clearance_type: str = 'graduation',
                      academic_session: Optional[str] = None) -> ClearanceRecord:
        """
        Submit a clearance request

        Args:
            student_id: Owning student
            department_ids: Distinct ids of the active departments that must clear the student
            clearance_type: graduation, transfer, withdrawal or semester
            academic_session: Optional session label, e.g. 2025/2026

        Returns:
            The persisted record with one decision per department

        Raises:
            ValidationError: If the department list is empty, has duplicates or
                names an unknown or inactive department
        """
        validate_required(student_id, 'Student')
        ids = validate_id_list(department_ids, 'Departments')
        validate_choice(clearance_type, CLEARANCE_TYPES, 'Clearance type')

        departments = {d.id: d for d in Department.query.filter(Department.id.in_(ids)).all()}
        invalid = [str(i) for i in ids if i not in departments or not departments[i].is_active]
        if invalid:
            raise ValidationError(f"Unknown or inactive departments: {', '.join(invalid)}")

        now = utcnow()
        try:
            record = ClearanceRecord(
                student_id=student_id,
                clearance_type=clearance_type,
                academic_session=academic_session,
                overall_status='pending',
                created_at=now,
                updated_at=now
            )
            record.timeline.append(TimelineEntry(
                action='submitted',
                description=f"Clearance submitted to {len(ids)} departments",
                performed_by=student_id,
                details={'department_ids': ids},
                created_at=now
            ))

            for department_id in ids:
                department = departments[department_id]
                decision = DepartmentDecision(
                    department_id=department.id,
                    department_name=department.name,
                    status='pending',
                    created_at=now
                )
                if department.auto_approval:
                    decision.status = 'approved'
                    decision.approved_at = now
                    decision.remarks = AUTO_APPROVAL_REMARKS
                    record.timeline.append(TimelineEntry(
                        action='department_auto_approved',
                        description=f"{department.name} approved automatically",
                        details={'department_id': department.id},
                        created_at=now
                    ))
                record.decisions.append(decision)

            ClearanceService._apply_overall_status(record, [d.status for d in record.decisions], now)
            ClearanceService._save_numbered(record, now)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to create clearance record: {str(e)}")

        log_info(f"Clearance {record.application_number} created for student {student_id}")
        events.emit(events.CLEARANCE_SUBMITTED, ClearanceService._record_payload(record))
        for decision in record.decisions:
            if decision.status == 'approved':
                ClearanceService._emit_decision(record, decision, departments[decision.department_id],
                                                override=False)
        ClearanceService._emit_outcome(record, 'pending')
        return record

    @staticmethod
    def record_decision(record_id: int, department_identifier: Any = None, decision: Optional[str] = None,
                        acting_user_id: Optional[int] = None, remarks: Optional[str] = None,
                        department_id: Optional[int] = None,
                        decision_id: Optional[int] = None) -> ClearanceRecord:
        """
        Record one department's approval or rejection

        The department is addressed by department_identifier, which may be
        either the decision id or the department id, or explicitly through
        department_id / decision_id. Every given reference must resolve to the
        same single decision of the record.

        Raises:
            ValidationError: Bad decision value or missing required remarks
            NotFoundError: Unknown record, or a reference that matches no
                decision or more than one
            ConflictError: The decision is no longer pending
        """
        validate_choice(decision, TERMINAL_STATUSES, 'Decision')
        remarks = ClearanceService._clean_remarks(remarks)

        try:
            record = ClearanceRepository.lock_record(record_id)
            target = ClearanceService._resolve_decision(
                record, department_identifier, department_id, decision_id
            )
            department = DepartmentService.get_department(target.department_id)
            if target.status != 'pending':
                raise ConflictError(f"{target.department_name} has already {target.status} this clearance")
            if department.require_remarks and not remarks:
                raise ValidationError(f"Remarks are required by {department.name}")

            now = utcnow()
            if not ClearanceRepository.transition_decision(
                    target.id, 'pending', decision, acting_user_id, remarks, now):
                raise ConflictError(f"{target.department_name} decision was recorded concurrently")

            decisions = ClearanceRepository.reload_decisions(record.id)
            record.timeline.append(TimelineEntry(
                action=f"department_{decision}",
                description=f"{target.department_name} {decision}",
                performed_by=acting_user_id,
                details={'department_id': target.department_id, 'remarks': remarks},
                created_at=now
            ))
            previous = ClearanceService._apply_overall_status(record, [d.status for d in decisions], now)
            db.session.commit()
        except ClearflowException:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to record decision: {str(e)}")

        log_info(f"Clearance {record.application_number}: {target.department_name} {decision} "
                 f"by user {acting_user_id}, overall {record.overall_status}")
        ClearanceService._emit_decision(record, target, department, override=False)
        ClearanceService._emit_outcome(record, previous)
        return record

    @staticmethod
    def override_decision(record_id: int, department_identifier: Any = None, decision: Optional[str] = None,
                          admin_user_id: Optional[int] = None, remarks: Optional[str] = None,
                          department_id: Optional[int] = None,
                          decision_id: Optional[int] = None) -> ClearanceRecord:
        """
        Administrator override of a department decision

        Unlike record_decision this may change a decision that is already
        approved or rejected, or reopen it as pending. Remarks are mandatory.
        """
        validate_choice(decision, DECISION_STATUSES, 'Decision')
        remarks = ClearanceService._clean_remarks(remarks)
        validate_required(remarks, 'Remarks')

        try:
            record = ClearanceRepository.lock_record(record_id)
            target = ClearanceService._resolve_decision(
                record, department_identifier, department_id, decision_id
            )
            department = DepartmentService.get_department(target.department_id)
            if target.status == decision:
                raise ConflictError(f"{target.department_name} decision is already {decision}")

            now = utcnow()
            from_status = target.status
            target.status = decision
            target.remarks = remarks
            if decision == 'pending':
                target.approved_by = None
                target.approved_at = None
            else:
                target.approved_by = admin_user_id
                target.approved_at = now

            record.timeline.append(TimelineEntry(
                action='department_override',
                description=f"{target.department_name} overridden from {from_status} to {decision}",
                performed_by=admin_user_id,
                details={'department_id': target.department_id, 'from': from_status,
                         'to': decision, 'remarks': remarks},
                created_at=now
            ))
            previous = ClearanceService._apply_overall_status(
                record, [d.status for d in record.decisions], now
            )
            db.session.commit()
        except ClearflowException:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to override decision: {str(e)}")

        log_info(f"Clearance {record.application_number}: {target.department_name} overridden "
                 f"from {from_status} to {decision} by admin {admin_user_id}")
        ClearanceService._emit_decision(record, target, department, override=True)
        ClearanceService._emit_outcome(record, previous)
        return record

    @staticmethod
    def get_record(record_id: int) -> ClearanceRecord:
        return ClearanceRepository.find_by_id(record_id)

    @staticmethod
    def find_decision(record_id: int, department_identifier: Any = None, department_id: Optional[int] = None,
                      decision_id: Optional[int] = None) -> DepartmentDecision:
        """Resolve a department reference inside a record without changing anything"""
        record = ClearanceRepository.find_by_id(record_id)
        return ClearanceService._resolve_decision(record, department_identifier, department_id, decision_id)

    @staticmethod
    def get_records_for_student(student_id: int) -> List[ClearanceRecord]:
        return ClearanceRepository.find_by_student(student_id)

    @staticmethod
    def get_records_for_department(department_id: int,
                                   status_filter: Optional[str] = None) -> List[ClearanceRecord]:
        """
        Records holding a decision for department

        status_filter applies to that department's decision, not to the
        overall status, so 'pending' gives the officer's approval queue.
        """
        if status_filter is not None:
            validate_choice(status_filter, DECISION_STATUSES, 'Status')
        DepartmentService.get_department(department_id)
        return ClearanceRepository.find_by_department(department_id, status_filter)

    @staticmethod
    def get_overdue_decisions(department_id: int, now: Optional[datetime] = None) -> List[DepartmentDecision]:
        """Pending decisions older than the department's max_processing_days"""
        department = DepartmentService.get_department(department_id)
        cutoff = (now or utcnow()) - timedelta(days=department.max_processing_days)
        return DepartmentDecision.query.filter(
            DepartmentDecision.department_id == department_id,
            DepartmentDecision.status == 'pending',
            DepartmentDecision.created_at < cutoff
        ).order_by(DepartmentDecision.created_at, DepartmentDecision.id).all()

    @staticmethod
    def get_student_dashboard(student_id: int) -> Dict[str, Any]:
        """Latest clearance summary with the five most recent department activities"""
        records = ClearanceRepository.find_by_student(student_id)
        unread = Notification.query.filter_by(recipient_id=student_id, is_read=False).count()
        if not records:
            return {
                'clearance': None,
                'recent_activity': [],
                'total_requests': 0,
                'unread_notifications': unread
            }

        latest = records[0]
        activity = sorted(
            latest.decisions,
            key=lambda d: (d.approved_at or d.created_at, d.id),
            reverse=True
        )[:5]
        return {
            'clearance': latest.to_dict(),
            'recent_activity': [{
                'decision_id': d.id,
                'department': d.department_name,
                'status': d.status,
                'date': to_iso(d.approved_at or d.created_at),
                'remarks': d.remarks or ''
            } for d in activity],
            'total_requests': len(records),
            'unread_notifications': unread
        }

    @staticmethod
    def _resolve_decision(record: ClearanceRecord, identifier: Any, department_id: Any,
                          decision_id: Any) -> DepartmentDecision:
        references = []
        if identifier is not None:
            ident = ClearanceService._as_id(identifier)
            references.append((identifier,
                               [d for d in record.decisions if d.id == ident or d.department_id == ident]))
        if department_id is not None:
            dept = ClearanceService._as_id(department_id)
            references.append((department_id,
                               [d for d in record.decisions if d.department_id == dept]))
        if decision_id is not None:
            ident = ClearanceService._as_id(decision_id)
            references.append((decision_id,
                               [d for d in record.decisions if d.id == ident]))

        if not references:
            raise ValidationError("A department or decision reference is required")

        resolved = None
        for value, matches in references:
            if len(matches) != 1:
                raise NotFoundError("Department decision", value)
            if resolved is not None and matches[0] is not resolved:
                raise NotFoundError("Department decision", value)
            resolved = matches[0]
        return resolved

    @staticmethod
    def _apply_overall_status(record: ClearanceRecord, statuses: List[str], now: datetime) -> str:
        """Recompute overall status from scratch; returns the previous value"""
        previous = record.overall_status or 'pending'
        record.overall_status = derive_overall_status(statuses)
        if record.overall_status == 'approved':
            if record.completed_at is None:
                record.completed_at = now
        else:
            record.completed_at = None
        record.updated_at = now
        return previous

    @staticmethod
    def _save_numbered(record: ClearanceRecord, now: datetime) -> None:
        """
        Assign the next application number and flush record

        A concurrent submission may take the same number first; the unique
        constraint rejects the loser, which draws a fresh number.
        """
        for attempt in range(1, APPLICATION_NUMBER_ATTEMPTS + 1):
            record.application_number = ClearanceService._next_application_number(now)
            try:
                with db.session.begin_nested():
                    ClearanceRepository.save(record)
                return
            except IntegrityError:
                if attempt == APPLICATION_NUMBER_ATTEMPTS:
                    raise
                log_info(f"Application number {record.application_number} already taken, retrying")

    @staticmethod
    def _next_application_number(now: datetime) -> str:
        prefix = f"{current_app.config.get('APPLICATION_NUMBER_PREFIX', 'CLR')}{now.year}"
        latest = db.session.query(func.max(ClearanceRecord.application_number)) \
            .filter(ClearanceRecord.application_number.like(f"{prefix}%")).scalar()
        sequence = int(latest[len(prefix):]) + 1 if latest else 1
        return f"{prefix}{sequence:06d}"

    @staticmethod
    def _as_id(value: Any) -> int:
        if isinstance(value, bool):
            raise ValidationError("Department reference must be an integer id")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError("Department reference must be an integer id")

    @staticmethod
    def _clean_remarks(remarks: Optional[str]) -> Optional[str]:
        if remarks is None:
            return None
        if not isinstance(remarks, str):
            raise ValidationError("Remarks must be a string")
        return remarks.strip() or None

    @staticmethod
    def _record_payload(record: ClearanceRecord) -> Dict[str, Any]:
        return {
            'record_id': record.id,
            'student_id': record.student_id,
            'application_number': record.application_number,
            'overall_status': record.overall_status
        }

    @staticmethod
    def _emit_decision(record: ClearanceRecord, decision: DepartmentDecision, department: Department,
                       override: bool) -> None:
        payload = ClearanceService._record_payload(record)
        payload.update({
            'decision_id': decision.id,
            'department_id': decision.department_id,
            'department_name': decision.department_name,
            'status': decision.status,
            'acted_by': decision.approved_by,
            'remarks': decision.remarks,
            'override': override,
            'notification_enabled': department.notification_enabled
        })
        events.emit(events.DECISION_RECORDED, payload)

    @staticmethod
    def _emit_outcome(record: ClearanceRecord, previous: str) -> None:
        if record.overall_status == previous:
            return
        if record.overall_status == 'approved':
            events.emit(events.CLEARANCE_COMPLETED, ClearanceService._record_payload(record))
        elif record.overall_status == 'rejected':
            events.emit(events.CLEARANCE_REJECTED, ClearanceService._record_payload(record))
