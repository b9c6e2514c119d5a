"""
Context module initialization.
"""

from .store import ExecutionContext

__all__ = [
    'ExecutionContext'
]
