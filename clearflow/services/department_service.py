"""
Department registry service
"""

from typing import Any, Dict, Iterable, List, Optional
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from clearflow.models import db, Department, DepartmentRequirement, DepartmentOfficer
from clearflow.models.department import (
    OFFICER_ROLES, OFFICER_PERMISSIONS, DEFAULT_OFFICER_PERMISSIONS
)
from clearflow.utils.exceptions import ValidationError, NotFoundError, ConflictError, DatabaseError
from clearflow.utils.validators import (
    validate_required, validate_string_length, validate_email, validate_phone_number,
    validate_choice
)
from clearflow.utils.helpers import log_info, utcnow

SETTING_FIELDS = ('auto_approval', 'require_remarks', 'max_processing_days', 'notification_enabled')


class DepartmentService:
    """Department registry: identity, requirements, officers and settings"""

    @staticmethod
    def get_department(department_id: int) -> Department:
        department = db.session.get(Department, department_id)
        if department is None:
            raise NotFoundError("Department", department_id)
        return department

    @staticmethod
    def list_active_departments() -> List[Department]:
        return Department.query.filter_by(is_active=True).order_by(Department.name).all()

    @staticmethod
    def create_department(name: str, code: str, faculty: str, description: Optional[str] = None,
                          requirements: Optional[Iterable[Dict[str, Any]]] = None,
                          contact_email: Optional[str] = None, contact_phone: Optional[str] = None,
                          office: Optional[str] = None, **settings) -> Department:
        """
        Register a new department

        Args:
            name: Unique department name
            code: Unique short code, stored uppercase
            faculty: Owning faculty
            requirements: Requirement descriptors ({name, description, is_required,
                document_required, order})
            settings: Any of auto_approval, require_remarks, max_processing_days,
                notification_enabled

        Returns:
            The created department

        Raises:
            ValidationError: If a field is missing or malformed
            ConflictError: If the name or code is already taken
        """
        unknown = set(settings) - set(SETTING_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        validate_required(name, 'Name')
        validate_required(code, 'Code')
        validate_required(faculty, 'Faculty')
        name = name.strip()
        code = code.strip().upper()
        validate_string_length(name, max_length=200, field_name='Name')
        validate_string_length(code, min_length=2, max_length=20, field_name='Code')

        if contact_email and not validate_email(contact_email):
            raise ValidationError("Invalid contact email format")
        if contact_phone and not validate_phone_number(contact_phone):
            raise ValidationError("Invalid contact phone number")

        if Department.query.filter_by(name=name).first():
            raise ConflictError(f"Department name '{name}' already exists")
        if Department.query.filter_by(code=code).first():
            raise ConflictError(f"Department code '{code}' already exists")

        department = Department(
            name=name,
            code=code,
            faculty=faculty.strip(),
            description=description,
            contact_email=contact_email,
            contact_phone=contact_phone,
            office=office,
            max_processing_days=current_app.config.get('DEFAULT_MAX_PROCESSING_DAYS', 7)
        )
        DepartmentService._apply_settings(department, settings)

        for index, item in enumerate(requirements or []):
            validate_required(item.get('name'), 'Requirement name')
            department.requirements.append(DepartmentRequirement(
                name=item['name'].strip(),
                description=item.get('description'),
                is_required=bool(item.get('is_required', True)),
                document_required=bool(item.get('document_required', False)),
                order=int(item.get('order', index))
            ))

        DepartmentService._commit(department)
        log_info(f"Department {department.code} created")
        return department

    @staticmethod
    def update_settings(department_id: int, **settings) -> Department:
        """Change department settings. Statistics are never touched here."""
        department = DepartmentService.get_department(department_id)
        unknown = set(settings) - set(SETTING_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")
        DepartmentService._apply_settings(department, settings)
        DepartmentService._commit(department)
        log_info(f"Department {department.code} settings updated")
        return department

    @staticmethod
    def add_officer(department_id: int, user_id: int, role: str = 'officer',
                    permissions: Optional[List[str]] = None) -> DepartmentOfficer:
        """
        Append an active officer entry

        Raises:
            NotFoundError: If the department does not exist
            ConflictError: If the user is already an active officer
            ValidationError: If role or permissions are invalid
        """
        department = DepartmentService.get_department(department_id)
        validate_choice(role, OFFICER_ROLES, 'Role')
        if permissions is None:
            permissions = list(DEFAULT_OFFICER_PERMISSIONS)
        if not isinstance(permissions, (list, tuple)):
            raise ValidationError("Permissions must be a list")
        for permission in permissions:
            validate_choice(permission, OFFICER_PERMISSIONS, 'Permission')

        if any(officer.user_id == user_id for officer in department.active_officers):
            raise ConflictError("User is already an officer in this department")

        officer = DepartmentOfficer(
            user_id=user_id,
            role=role,
            permissions=list(dict.fromkeys(permissions)),
            is_active=True,
            assigned_at=utcnow()
        )
        department.officers.append(officer)
        DepartmentService._commit(department)
        log_info(f"User {user_id} added as {role} to department {department.code}")
        return officer

    @staticmethod
    def remove_officer(department_id: int, user_id: int) -> DepartmentOfficer:
        """
        Deactivate the first active roster entry of user

        When the user has only inactive entries the first of them is returned
        unchanged, keeping its original removal time.

        Raises:
            NotFoundError: If the user never appeared in the roster
        """
        department = DepartmentService.get_department(department_id)
        entries = [o for o in department.officers if o.user_id == user_id]
        if not entries:
            raise NotFoundError("Officer", user_id)
        officer = next((o for o in entries if o.is_active), entries[0])

        if officer.is_active:
            officer.is_active = False
            officer.removed_at = utcnow()
        DepartmentService._commit(department)
        log_info(f"User {user_id} removed from department {department.code}")
        return officer

    @staticmethod
    def has_permission(department_id: int, user_id: int, permission: str) -> bool:
        officer = DepartmentOfficer.query.filter_by(
            department_id=department_id, user_id=user_id, is_active=True
        ).first()
        return officer is not None and permission in (officer.permissions or [])

    @staticmethod
    def _apply_settings(department: Department, settings: Dict[str, Any]) -> None:
        for key in ('auto_approval', 'require_remarks', 'notification_enabled'):
            if key in settings:
                if not isinstance(settings[key], bool):
                    raise ValidationError(f"{key} must be a boolean")
                setattr(department, key, settings[key])
        if 'max_processing_days' in settings:
            days = settings['max_processing_days']
            if isinstance(days, bool) or not isinstance(days, int) or days < 1:
                raise ValidationError("max_processing_days must be a positive integer")
            department.max_processing_days = days

    @staticmethod
    def _commit(department: Department) -> None:
        try:
            db.session.add(department)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise DatabaseError(f"Failed to save department: {str(e)}")
