"""
Enumerations and constants for the Studyplan platform.
"""

from enum import Enum


class CreditPolicy(Enum):
    """How course credits weigh into the overall GPA."""
    FIXED = "fixed"    # Every course counts for the configured default credits
    COURSE = "course"  # Use the credit count stored on each course


class StoreType(Enum):
    """Supported persistence backends."""
    MEMORY = "memory"
    SQLITE = "sqlite"


DEFAULT_CREDITS = 3
DEFAULT_COURSE_COLOR = "#3B82F6"
