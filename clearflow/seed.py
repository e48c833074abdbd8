"""
Default clearance departments
"""

from clearflow.models import Department
from clearflow.services.department_service import DepartmentService

DEFAULT_DEPARTMENTS = [
    {
        'name': 'Head of Department', 'code': 'HOD', 'faculty': 'Science',
        'description': 'Departmental clearance',
        'requirements': [
            {'name': 'Registered all courses as specified for graduation'},
            {'name': 'No references or outstanding courses'}
        ]
    },
    {
        'name': 'Faculty', 'code': 'FAC', 'faculty': 'Science',
        'description': 'Faculty clearance',
        'requirements': [{'name': 'Satisfied Faculty requirements for clearance'}]
    },
    {
        'name': 'University Library', 'code': 'LIB', 'faculty': 'General',
        'requirements': [{'name': 'Returned all library books loaned'}]
    },
    {
        'name': 'Student Affairs', 'code': 'SAF', 'faculty': 'General',
        'requirements': [
            {'name': 'No disciplinary case'},
            {'name': 'Academic outfit returned'}
        ]
    },
    {
        'name': 'Bursary', 'code': 'BUR', 'faculty': 'General',
        'require_remarks': True,
        'requirements': [
            {'name': 'Paid all required fees from admission to graduation', 'document_required': True},
            {'name': 'No outstanding fees'}
        ]
    },
    {
        'name': 'Office of Alumni Relations', 'code': 'ALU', 'faculty': 'General',
        'requirements': [{'name': 'Met all requirements for Alumni Relations'}]
    }
]


def seed_departments() -> int:
    """Create the default departments that do not exist yet; returns how many were created"""
    created = 0
    for item in DEFAULT_DEPARTMENTS:
        if Department.query.filter_by(code=item['code']).first():
            continue
        data = dict(item)
        DepartmentService.create_department(
            data.pop('name'),
            data.pop('code'),
            data.pop('faculty'),
            description=data.pop('description', None),
            requirements=data.pop('requirements', []),
            **data
        )
        created += 1
    return created
