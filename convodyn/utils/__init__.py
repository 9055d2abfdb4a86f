"""
Utility modules for convodyn
"""

from .timing import Timer

__all__ = [
    'Timer',
]
