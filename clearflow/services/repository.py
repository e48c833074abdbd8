"""
Persistence layer for clearance records
"""

from datetime import datetime
from typing import List, Optional
from clearflow.models import db, ClearanceRecord, DepartmentDecision
from clearflow.utils.exceptions import NotFoundError


class ClearanceRepository:
    """Clearance record persistence"""

    @staticmethod
    def save(record: ClearanceRecord) -> ClearanceRecord:
        """Stage record and flush so generated ids are available. Caller commits."""
        db.session.add(record)
        db.session.flush()
        return record

    @staticmethod
    def find_by_id(record_id: int) -> ClearanceRecord:
        record = db.session.get(ClearanceRecord, record_id)
        if record is None:
            raise NotFoundError("Clearance record", record_id)
        return record

    @staticmethod
    def lock_record(record_id: int) -> ClearanceRecord:
        """
        Load record with a row lock held until the transaction ends

        Serializes overall status recomputation between officers acting on
        different departments of the same record. SQLite ignores FOR UPDATE.
        """
        record = ClearanceRecord.query.filter_by(id=record_id) \
            .with_for_update().populate_existing().first()
        if record is None:
            raise NotFoundError("Clearance record", record_id)
        return record

    @staticmethod
    def reload_decisions(record_id: int) -> List[DepartmentDecision]:
        """Re-read every decision of a record from the database"""
        return DepartmentDecision.query.filter_by(record_id=record_id) \
            .order_by(DepartmentDecision.id).populate_existing().all()

    @staticmethod
    def find_by_student(student_id: int) -> List[ClearanceRecord]:
        return ClearanceRecord.query.filter_by(student_id=student_id) \
            .order_by(ClearanceRecord.created_at.desc(), ClearanceRecord.id.desc()).all()

    @staticmethod
    def find_by_department(department_id: int, status: Optional[str] = None) -> List[ClearanceRecord]:
        """Records holding a decision for department, optionally by that decision's status"""
        query = ClearanceRecord.query.join(DepartmentDecision) \
            .filter(DepartmentDecision.department_id == department_id)
        if status is not None:
            query = query.filter(DepartmentDecision.status == status)
        return query.order_by(ClearanceRecord.created_at.asc(), ClearanceRecord.id.asc()).all()

    @staticmethod
    def transition_decision(decision_id: int, expected_status: str, new_status: str,
                            acted_by: Optional[int], remarks: Optional[str],
                            acted_at: datetime) -> bool:
        """
        Conditional update of one department decision

        Writes only while the stored status still equals expected_status.

        Returns:
            True if this call performed the transition
        """
        updated = DepartmentDecision.query \
            .filter_by(id=decision_id, status=expected_status) \
            .update({
                'status': new_status,
                'approved_by': acted_by,
                'approved_at': acted_at,
                'remarks': remarks
            }, synchronize_session=False)
        return updated == 1
