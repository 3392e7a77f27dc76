"""
API module for the REST adapter.
"""

from .rest_api import LISRestAPI

__all__ = [
    "LISRestAPI",
]
