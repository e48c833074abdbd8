"""
Department models for the Clearflow application
"""

from clearflow.models.database import db
from clearflow.utils.helpers import utcnow, to_iso

OFFICER_ROLES = ('head', 'officer', 'assistant')
OFFICER_PERMISSIONS = ('approve', 'reject', 'view', 'edit')
DEFAULT_OFFICER_PERMISSIONS = ['view', 'approve', 'reject']


class Department(db.Model):
    """Department model"""
    __tablename__ = 'departments'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    faculty = db.Column(db.String(200), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Contact
    contact_email = db.Column(db.String(255), nullable=True)
    contact_phone = db.Column(db.String(30), nullable=True)
    office = db.Column(db.String(200), nullable=True)

    # Settings
    auto_approval = db.Column(db.Boolean, default=False, nullable=False)
    require_remarks = db.Column(db.Boolean, default=False, nullable=False)
    max_processing_days = db.Column(db.Integer, default=7, nullable=False)
    notification_enabled = db.Column(db.Boolean, default=True, nullable=False)

    # Statistics, written only by StatisticsService.recompute_department_statistics
    total_processed = db.Column(db.Integer, default=0, nullable=False)
    total_approved = db.Column(db.Integer, default=0, nullable=False)
    total_rejected = db.Column(db.Integer, default=0, nullable=False)
    average_processing_time = db.Column(db.Float, default=0.0, nullable=False)
    statistics_updated_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    requirements = db.relationship('DepartmentRequirement', backref='department', lazy=True,
                                   order_by='DepartmentRequirement.order',
                                   cascade='all, delete-orphan')
    officers = db.relationship('DepartmentOfficer', backref='department', lazy=True,
                               order_by='DepartmentOfficer.id',
                               cascade='all, delete-orphan')

    @property
    def settings(self):
        return {
            'auto_approval': self.auto_approval,
            'require_remarks': self.require_remarks,
            'max_processing_days': self.max_processing_days,
            'notification_enabled': self.notification_enabled
        }

    @property
    def statistics(self):
        return {
            'total_processed': self.total_processed,
            'total_approved': self.total_approved,
            'total_rejected': self.total_rejected,
            'average_processing_time': self.average_processing_time,
            'last_updated': to_iso(self.statistics_updated_at)
        }

    @property
    def active_officers(self):
        return [officer for officer in self.officers if officer.is_active]

    def to_dict(self, include_officers=False):
        """Convert to dictionary"""
        data = {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'description': self.description,
            'faculty': self.faculty,
            'is_active': self.is_active,
            'contact': {
                'email': self.contact_email,
                'phone': self.contact_phone,
                'office': self.office
            },
            'requirements': [req.to_dict() for req in self.requirements],
            'settings': self.settings,
            'statistics': self.statistics,
            'created_at': to_iso(self.created_at)
        }
        if include_officers:
            data['officers'] = [officer.to_dict() for officer in self.officers]
        return data


class DepartmentRequirement(db.Model):
    """Requirement a student must satisfy to be cleared by a department"""
    __tablename__ = 'department_requirements'

    id = db.Column(db.Integer, primary_key=True)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_required = db.Column(db.Boolean, default=True, nullable=False)
    document_required = db.Column(db.Boolean, default=False, nullable=False)
    order = db.Column(db.Integer, default=0, nullable=False)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_required': self.is_required,
            'document_required': self.document_required,
            'order': self.order
        }


class DepartmentOfficer(db.Model):
    """
    Officer roster entry.

    Entries are never deleted: removal flips ``is_active`` so the roster keeps
    its assignment history.
    """
    __tablename__ = 'department_officers'

    id = db.Column(db.Integer, primary_key=True)
    department_id = db.Column(db.Integer, db.ForeignKey('departments.id'), nullable=False)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    role = db.Column(db.Enum(*OFFICER_ROLES, name='officer_role'), default='officer', nullable=False)
    permissions = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    assigned_at = db.Column(db.DateTime, default=utcnow)
    removed_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        """Convert to dictionary"""
        return {
            'id': self.id,
            'department_id': self.department_id,
            'user_id': self.user_id,
            'role': self.role,
            'permissions': list(self.permissions or []),
            'is_active': self.is_active,
            'assigned_at': to_iso(self.assigned_at),
            'removed_at': to_iso(self.removed_at)
        }
