"""
Helper utilities
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from flask import current_app


def setup_logging() -> None:
    """Setup application logging"""
    if not current_app.debug:
        # Production logging
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s %(levelname)s %(name)s %(message)s'
        )
    else:
        # Development logging
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s %(levelname)s %(name)s %(message)s'
        )


def log_error(message: str, exception: Optional[Exception] = None) -> None:
    """
    Log error message

    Args:
        message: Error message
        exception: Exception object
    """
    if exception:
        current_app.logger.error(f"{message}: {str(exception)}")
    else:
        current_app.logger.error(message)


def log_info(message: str) -> None:
    """
    Log info message

    Args:
        message: Info message
    """
    current_app.logger.info(message)


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def elapsed_days(start: datetime, end: datetime) -> float:
    """Fractional days between two timestamps"""
    return (end - start).total_seconds() / 86400.0


def create_response(success: bool, message: str, data: Optional[Any] = None) -> Dict[str, Any]:
    """
    Create standardized API response

    Args:
        success: Whether operation was successful
        message: Response message
        data: Optional data to include

    Returns:
        Standardized response dictionary
    """
    response = {
        'ok': success,
        'message': message
    }

    if data is not None:
        response['data'] = data

    return response
