"""
staffdb

Department/Employee persistence over a BaseX XML document store.
"""

from .core.errors import (
    AlreadyExistsError,
    CodecError,
    NotFoundError,
    PartialFailureError,
    ReferentialViolationError,
    StoreError,
    TransportError,
    ValidationError,
)
from .models.models import Department, Employee
from .services.repository import StaffRepository

__all__ = [
    'Department',
    'Employee',
    'StaffRepository',
    'StoreError',
    'ValidationError',
    'NotFoundError',
    'AlreadyExistsError',
    'ReferentialViolationError',
    'CodecError',
    'TransportError',
    'PartialFailureError',
]
