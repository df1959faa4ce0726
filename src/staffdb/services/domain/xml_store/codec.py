#!/usr/bin/env python3
"""Department/Employee to XML document codec.

This module maps the domain entities onto the element layout used by the
store and back again:

    <dept codi="D1"><nom>Sales</nom><localitat>Boston</localitat></dept>
    <emp codi="E1" dept="D1" cap="E0"><cognom>Smith</cognom><salari>1200</salari></emp>

Identifiers and references are attributes, data fields are child elements,
and absent optional values are omitted instead of being written empty.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum

# Use defusedxml for secure XML parsing (prevents XXE attacks)
import defusedxml.ElementTree as DET
from defusedxml import DefusedXmlException

# Element construction and serialization come from the standard library
from xml.etree.ElementTree import Element, SubElement, tostring

from staffdb.core.errors import CodecError, NotFoundError
from staffdb.models.models import Department, Employee

logger = logging.getLogger(__name__)

# Decimal integer text as written by the encoder (ASCII digits, optional sign)
INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")


class ValueKind(str, Enum):
    TEXT = "text"
    INTEGER = "integer"


@dataclass(frozen=True)
class FieldMapping:
    """Where one entity field lives inside its XML element."""

    attribute: str  # model field name
    node: str  # XML attribute or child element name
    is_attribute: bool = False
    required: bool = False
    kind: ValueKind = ValueKind.TEXT

    @property
    def path(self) -> str:
        """Relative path selecting this field from its entity element."""
        return f"@{self.node}" if self.is_attribute else self.node


@dataclass(frozen=True)
class EntityMapping:
    entity: str  # human readable name used in errors
    model: type
    element: str
    collection: str  # DocumentLayout attribute naming the container
    fields: tuple[FieldMapping, ...]

    @property
    def key(self) -> FieldMapping:
        return self.fields[0]

    def field(self, attribute: str) -> FieldMapping:
        for mapping in self.fields:
            if mapping.attribute == attribute:
                return mapping
        raise KeyError(f"{self.entity} has no field '{attribute}'")


# Field order is serialization order: attributes first, then child elements
DEPARTMENT = EntityMapping(
    entity="Department",
    model=Department,
    element="dept",
    collection="departments",
    fields=(
        FieldMapping("code", "codi", is_attribute=True, required=True),
        FieldMapping("name", "nom", required=True),
        FieldMapping("location", "localitat"),
    ),
)

EMPLOYEE = EntityMapping(
    entity="Employee",
    model=Employee,
    element="emp",
    collection="employees",
    fields=(
        FieldMapping("code", "codi", is_attribute=True, required=True),
        FieldMapping("department_code", "dept", is_attribute=True, required=True),
        FieldMapping("manager_code", "cap", is_attribute=True),
        FieldMapping("surname", "cognom", required=True),
        FieldMapping("title", "ofici"),
        FieldMapping("hire_date", "dataAlta"),
        FieldMapping("salary", "salari", kind=ValueKind.INTEGER),
        FieldMapping("commission", "comissio", kind=ValueKind.INTEGER),
    ),
)


def _encode(obj, mapping: EntityMapping) -> str:
    element = Element(mapping.element)
    for field in mapping.fields:
        value = getattr(obj, field.attribute)
        if value is None:
            if field.required:
                raise CodecError(
                    f"{mapping.entity} is missing mandatory field '{field.attribute}'",
                    field=field.attribute,
                )
            continue
        text = str(value)
        if field.is_attribute:
            element.set(field.node, text)
        else:
            SubElement(element, field.node).text = text
    # encoding="unicode" returns str and never writes an XML declaration
    return tostring(element, encoding="unicode")


def encode_department(department: Department) -> str:
    """
    Serialize a department to a bare ``dept`` element fragment.

    The employee collection is not part of the department element; employees
    live in their own collection and are written separately.
    """
    return _encode(department, DEPARTMENT)


def encode_employee(employee: Employee) -> str:
    """Serialize an employee to a bare ``emp`` element fragment."""
    return _encode(employee, EMPLOYEE)


def decode_value(field: FieldMapping, raw: str, mapping: EntityMapping, code: str):
    """
    Normalize one scalar query result into a field value.

    Args:
        field: Mapping of the field that was queried
        raw: Result returned by the store (``""`` means no value)
        mapping: Entity the field belongs to
        code: Key of the entity being read, for error context

    Returns:
        The decoded value, or None for an absent optional field

    Raises:
        NotFoundError: If a mandatory field is empty, meaning the entity does
            not exist
        CodecError: If an integer field holds a non-numeric value
    """
    if raw == "":
        if field.required:
            raise NotFoundError(mapping.entity, code)
        return None

    if field.kind is ValueKind.INTEGER:
        text = raw.strip()
        if not INTEGER_TEXT.fullmatch(text):
            logger.error(f"{mapping.entity} '{code}' has non-numeric {field.node}: {raw!r}")
            raise CodecError(
                f"{mapping.entity} '{code}' field '{field.attribute}' is not an integer: {raw!r}",
                field=field.attribute,
                raw=raw,
            )
        return int(text)
    return raw


def _decode(xml_text: str, mapping: EntityMapping):
    try:
        root = DET.fromstring(xml_text)
    except (DET.ParseError, DefusedXmlException) as e:
        raise CodecError(f"Malformed {mapping.entity} fragment: {e}") from e

    if root.tag != mapping.element:
        raise CodecError(f"Expected <{mapping.element}> element, got <{root.tag}>")

    code = root.get(mapping.key.node, "")
    values = {}
    for field in mapping.fields:
        if field.is_attribute:
            raw = root.get(field.node, "")
        else:
            child = root.find(field.node)
            raw = "" if child is None else "".join(child.itertext())

        if raw == "" and field.required:
            raise CodecError(
                f"{mapping.entity} fragment is missing mandatory <{field.node}>",
                field=field.attribute,
            )
        values[field.attribute] = decode_value(field, raw, mapping, code)

    return mapping.model(**values)


def decode_department(xml_text: str) -> Department:
    """Parse a ``dept`` fragment. The result has ``employees`` unset."""
    return _decode(xml_text, DEPARTMENT)


def decode_employee(xml_text: str) -> Employee:
    """Parse an ``emp`` fragment."""
    return _decode(xml_text, EMPLOYEE)
