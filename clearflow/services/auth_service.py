"""
Identity service

Login and session issuance live in the institution's authentication
service; this module only reads the identity it left in the session.
"""

from typing import Optional, Dict, Any
from flask import session
from clearflow.services.department_service import DepartmentService
from clearflow.utils.exceptions import AuthenticationError, AuthorizationError

USER_ROLES = ('student', 'officer', 'admin')


class AuthService:
    """Authentication service class"""

    @staticmethod
    def get_current_user() -> Optional[Dict[str, Any]]:
        """Get current logged-in user"""
        user_id = session.get('user_id')
        role = session.get('user_role')
        if user_id is None or role not in USER_ROLES:
            return None
        return {'id': int(user_id), 'role': role}

    @staticmethod
    def require_auth() -> Dict[str, Any]:
        """Require authentication - raise exception if not authenticated"""
        user = AuthService.get_current_user()
        if not user:
            raise AuthenticationError("Authentication required")
        return user

    @staticmethod
    def require_role(*roles: str) -> Dict[str, Any]:
        """Require one of roles"""
        user = AuthService.require_auth()
        if user['role'] not in roles:
            raise AuthorizationError(f"{' or '.join(role.title() for role in roles)} access required")
        return user

    @staticmethod
    def require_department_permission(department_id: int, permission: str) -> Dict[str, Any]:
        """
        Require an administrator, or an active officer of department holding permission

        Raises:
            AuthenticationError: If no one is logged in
            AuthorizationError: If the caller may not act for the department
        """
        user = AuthService.require_role('officer', 'admin')
        if user['role'] == 'admin':
            return user
        if not DepartmentService.has_permission(department_id, user['id'], permission):
            raise AuthorizationError(f"'{permission}' permission required for this department")
        return user
