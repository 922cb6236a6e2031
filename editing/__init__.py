"""
Editing package: the live point buffer and the focus view derived from it.

Public API:
- EditBuffer, BufferMode
- SelectionSync
"""

from .buffer import EditBuffer, BufferMode
from .selection import SelectionSync

__all__ = [
    "EditBuffer",
    "BufferMode",
    "SelectionSync",
]
