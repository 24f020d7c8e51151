"""
Cutroom services package.

Contains the access layer and the business logic behind each operation group.
"""

from .access import AccessLayer, build_access_layer
from .context import SessionContext

__all__ = ["AccessLayer", "SessionContext", "build_access_layer"]
