"""
Custom exceptions for the Studyplan platform.
"""

from typing import Optional, Any, Dict


class PlannerException(Exception):
    """Base exception for all Studyplan-related errors."""
    
    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(PlannerException):
    """Raised when data validation fails."""
    pass


class NotFoundError(PlannerException):
    """Raised when a course, grade category or assignment id does not resolve."""
    pass


class MalformedDataError(PlannerException):
    """Raised when a persisted record cannot be decoded."""
    pass


class PersistenceError(PlannerException):
    """Raised when persistence operations fail."""
    pass


class ConfigurationError(PlannerException):
    """Raised when configuration is invalid."""
    pass


class ConcurrencyError(PlannerException):
    """Raised when a resource lock cannot be acquired."""
    pass
