"""
Utilities package initialization
"""

from clearflow.utils.exceptions import (
    ClearflowException, ValidationError, NotFoundError, ConflictError,
    AuthenticationError, AuthorizationError, DatabaseError
)
from clearflow.utils.validators import (
    validate_email, validate_required, validate_string_length,
    validate_phone_number, validate_choice, validate_id_list, parse_date_bound
)
from clearflow.utils.helpers import (
    setup_logging, log_error, log_info, utcnow, to_iso, elapsed_days, create_response
)

__all__ = [
    'ClearflowException', 'ValidationError', 'NotFoundError', 'ConflictError',
    'AuthenticationError', 'AuthorizationError', 'DatabaseError',
    'validate_email', 'validate_required', 'validate_string_length',
    'validate_phone_number', 'validate_choice', 'validate_id_list', 'parse_date_bound',
    'setup_logging', 'log_error', 'log_info', 'utcnow', 'to_iso', 'elapsed_days',
    'create_response'
]
