"""XML document mapping and XQuery construction for the staff store."""

from .codec import (
    DEPARTMENT,
    EMPLOYEE,
    EntityMapping,
    FieldMapping,
    decode_department,
    decode_employee,
    decode_value,
    encode_department,
    encode_employee,
)
from .query_builder import QueryBuilder, string_literal, validate_code

__all__ = [
    "DEPARTMENT",
    "EMPLOYEE",
    "EntityMapping",
    "FieldMapping",
    "decode_department",
    "decode_employee",
    "decode_value",
    "encode_department",
    "encode_employee",
    "QueryBuilder",
    "string_literal",
    "validate_code",
]
