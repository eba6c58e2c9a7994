"""
API module providing the REST interface.
"""

from .rest_api import PlannerRestAPI

__all__ = [
    "PlannerRestAPI",
]
