"""
Custom exceptions for the Clearflow application
"""


class ClearflowException(Exception):
    """Base exception for Clearflow application"""
    pass


class ValidationError(ClearflowException):
    """Malformed or missing input"""
    pass


class NotFoundError(ClearflowException):
    """Unknown record, department or department decision"""

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)


class ConflictError(ClearflowException):
    """Duplicate officer assignment or a decision that is no longer pending"""
    pass


class AuthenticationError(ClearflowException):
    """Authentication error"""
    pass


class AuthorizationError(ClearflowException):
    """Authorization error"""
    pass


class DatabaseError(ClearflowException):
    """Database error"""
    pass
