"""
Utility functions shared by the planetary climate packages.
"""

from .logging_utils import configure_logging
from .numeric import clamp, finite_or

__all__ = ['configure_logging', 'clamp', 'finite_or']
