"""
Change event model for the CDC archive transform.

Events are delivered one at a time by an external router; this package
only parses the envelope into a typed, immutable ChangeEvent.
"""

from .base import ChangeEvent, ChangeEventError, Operation

__all__ = ["ChangeEvent", "ChangeEventError", "Operation"]
