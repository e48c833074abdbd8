"""
Clearance record models
"""

from clearflow.models.database import db
from clearflow.utils.helpers import utcnow, to_iso

DECISION_STATUSES = ('pending', 'approved', 'rejected')
TERMINAL_STATUSES = ('approved', 'rejected')
OVERALL_STATUSES = ('pending', 'in_progress', 'approved', 'rejected')
CLEARANCE_TYPES = ('graduation', 'transfer', 'withdrawal', 'semester')
NOTIFICATION_TYPES = (
    'clearance_submitted', 'clearance_approved', 'clearance_rejected', 'clearance_completed'
)


class ClearanceRecord(db.Model):
    """One student's multi-department clearance request"""
    __tablename__ = 'clearance_records'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, nullable=False, index=True)
    application_number = db.Column(db.String(32), unique=True, nullable=False)
    clearance_type = db.Column(db.Enum(*CLEARANCE_TYPES, name='clearance_type'),
                               default='graduation', nullable=False)
    academic_session = db.Column(db.String(20), nullable=True)
    overall_status = db.Column(db.Enum(*OVERALL_STATUSES, name='overall_status'),
                               default='pending', nullable=False, index=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    decisions = db.relationship('DepartmentDecision', backref='record', lazy=True,
                                order_by='DepartmentDecision.id',
                                cascade='all, delete-orphan')
    timeline = db.relationship('TimelineEntry', backref='record', lazy=True,
                               order_by='TimelineEntry.id',
                               cascade='all, delete-orphan')

    def status_counts(self):
        counts = {status: 0 for status in DECISION_STATUSES}
        for decision in self.decisions:
            counts[decision.status] += 1
        return counts

    def to_dict(self, include_timeline=False):
        """Convert to dictionary"""
        counts = self.status_counts()
        total = len(self.decisions)
        data = {
            'id': self.id,
            'student_id': self.student_id,
            'application_number': self.application_number,
            'clearance_type': self.clearance_type,
            'academic_session': self.academic_session,
            'overall_status': self.overall_status,
            'departments': [decision.to_dict() for decision in self.decisions],
            'total_departments': total,
            'approved_departments': counts['approved'],
            'pending_departments': counts['pending'],
            'rejected_departments': counts['rejected'],
            'completion_percentage': round(counts['approved'] / total * 100) if total else 0,
            'completed_at': to_iso(self.completed_at),
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at)
        }
        if include_timeline:
            data['timeline'] = [entry.to_dict() for entry in self.timeline]
        return data


class DepartmentDecision(db.Model):
    """One department's decision inside a clearance record"""
    __tablename__ = 'department_decisions'
    __table_args__ = (
        db.UniqueConstraint('record_id', 'department_id', name='uq_decision_record_department'),
    )

    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(db.Integer, db.ForeignKey('clearance_records.id'), nullable=False, index=True)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=False, index=True)
    # Snapshot taken at creation; a later department rename does not touch it
    department_name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.Enum(*DECISION_STATUSES, name='decision_status'),
                       default='pending', nullable=False)
    approved_by = db.Column(db.Integer, nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    approved_at = db.Column(db.DateTime, nullable=True)

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'department_id': self.department_id,
            'department_name': self.department_name,
            'status': self.status,
            'approved_by': self.approved_by,
            'remarks': self.remarks,
            'created_at': to_iso(self.created_at),
            'approved_at': to_iso(self.approved_at)
        }


class TimelineEntry(db.Model):
    """Append-only audit trail of a clearance record"""
    __tablename__ = 'clearance_timeline'

    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(db.Integer, db.ForeignKey('clearance_records.id'), nullable=False, index=True)
    action = db.Column(db.String(50), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    performed_by = db.Column(db.Integer, nullable=True)
    details = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'action': self.action,
            'description': self.description,
            'performed_by': self.performed_by,
            'details': self.details or {},
            'created_at': to_iso(self.created_at)
        }


class Notification(db.Model):
    """Notification model"""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.Integer, nullable=False, index=True)
    type = db.Column(db.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    clearance_id = db.Column(db.Integer, db.ForeignKey('clearance_records.id'), nullable=True)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=True)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'recipient_id': self.recipient_id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'clearance_id': self.clearance_id,
            'department_id': self.department_id,
            'is_read': self.is_read,
            'created_at': to_iso(self.created_at)
        }
