"""
Router modules for API endpoints
"""

from . import portfolio
from . import visualizations
from . import preferences

__all__ = [
    "portfolio",
    "visualizations",
    "preferences",
]
