#!/usr/bin/env python3
"""XQuery construction for the staff document store.

Queries are immutable objects; ``str(query)`` renders the XQuery text sent to
BaseX. Key values are validated when a query is built and embedded as
escaped string literals, so a caller-supplied code can never change the
shape of a query.
"""
import logging
import re
from dataclasses import dataclass

from staffdb.core.config import DocumentLayout
from staffdb.core.errors import ValidationError

from .codec import EntityMapping, FieldMapping

logger = logging.getLogger(__name__)

# Characters a code may not contain once embedded in query text
UNSAFE_CODE_CHARS = re.compile(r"[\"'&<>{}\[\]()$/=\s\x00-\x1f\x7f]")


def validate_code(value, label: str = "code") -> str:
    """
    Check that a key value is safe to embed in query text.

    Args:
        value: Candidate key value
        label: Name used in the error message

    Returns:
        The value unchanged

    Raises:
        ValidationError: If the value is not a non-empty string free of
            XQuery/XML metacharacters
    """
    if not isinstance(value, str) or value == "":
        raise ValidationError(f"{label} must be a non-empty string, got {value!r}", value=value)
    match = UNSAFE_CODE_CHARS.search(value)
    if match:
        logger.warning(f"Rejected unsafe {label} {value!r}")
        raise ValidationError(
            f"{label} {value!r} contains forbidden character {match.group()!r}",
            value=value,
        )
    return value


def string_literal(value: str) -> str:
    """Render a value as an XQuery string literal."""
    return '"' + value.replace("&", "&amp;").replace('"', '""') + '"'


def escape_enclosed(fragment: str) -> str:
    """Double curly braces so a direct element constructor reads them literally."""
    return fragment.replace("{", "{{").replace("}", "}}")


@dataclass(frozen=True)
class Predicate:
    attribute: str
    value: str

    def __str__(self) -> str:
        return f"[@{self.attribute} = {string_literal(self.value)}]"


@dataclass(frozen=True)
class NodeSet:
    """Entity elements of one collection filtered by an attribute predicate."""

    layout: DocumentLayout
    collection: str
    element: str
    predicate: Predicate

    @property
    def container_path(self) -> str:
        return self.layout.container_path(self.collection)

    def __str__(self) -> str:
        return f"{self.container_path}/{self.element}{self.predicate}"


@dataclass(frozen=True)
class ScalarQuery:
    nodes: NodeSet
    path: str

    def __str__(self) -> str:
        return f"data({self.nodes}/{self.path})"


@dataclass(frozen=True)
class ExistsQuery:
    nodes: NodeSet

    def __str__(self) -> str:
        return str(self.nodes)


@dataclass(frozen=True)
class ListQuery:
    """Selected values joined with newlines."""

    nodes: NodeSet
    path: str

    def __str__(self) -> str:
        return f'string-join(for $node in {self.nodes} return data($node/{self.path}), "&#10;")'


@dataclass(frozen=True)
class InsertQuery:
    layout: DocumentLayout
    collection: str
    fragment: str

    @property
    def container_path(self) -> str:
        return self.layout.container_path(self.collection)

    def __str__(self) -> str:
        # Keep whitespace-only text nodes instead of stripping them from the constructor
        return (
            "declare boundary-space preserve; "
            f"insert node {escape_enclosed(self.fragment)} as last into {self.container_path}"
        )


@dataclass(frozen=True)
class DeleteQuery:
    nodes: NodeSet

    def __str__(self) -> str:
        return f"delete nodes {self.nodes}"


@dataclass(frozen=True)
class ReplaceAttributeQuery:
    nodes: NodeSet
    attribute: str
    value: str

    def __str__(self) -> str:
        return (
            f"for $attr in {self.nodes}/@{self.attribute}\n"
            f"return replace value of node $attr with {string_literal(self.value)}"
        )


class QueryBuilder:
    """
    Builds queries for one document layout.

    Example:
        ```python
        builder = QueryBuilder(DocumentLayout())
        str(builder.field(DEPARTMENT, "D1", DEPARTMENT.field("name")))
        # 'data(/root/departments/dept[@codi = "D1"]/nom)'
        ```
    """

    def __init__(self, layout: DocumentLayout | None = None):
        self.layout = layout or DocumentLayout()

    def matching(self, mapping: EntityMapping, attribute: FieldMapping, value: str) -> NodeSet:
        if not attribute.is_attribute:
            raise ValueError(f"Predicates must use an attribute, '{attribute.node}' is an element")
        validate_code(value, f"{mapping.entity} {attribute.attribute}")
        return NodeSet(self.layout, mapping.collection, mapping.element,
                       Predicate(attribute.node, value))

    def by_key(self, mapping: EntityMapping, code: str) -> NodeSet:
        return self.matching(mapping, mapping.key, code)

    def field(self, mapping: EntityMapping, code: str, field: FieldMapping) -> ScalarQuery:
        """Select one field of the entity whose key equals ``code``."""
        return ScalarQuery(self.by_key(mapping, code), field.path)

    def exists(self, mapping: EntityMapping, code: str) -> ExistsQuery:
        """Select the whole entity node; a non-empty result means it exists."""
        return ExistsQuery(self.by_key(mapping, code))

    def list_values(self, mapping: EntityMapping, attribute: FieldMapping, value: str,
                    field: FieldMapping) -> ListQuery:
        """For every entity whose ``attribute`` equals ``value``, return ``field``."""
        return ListQuery(self.matching(mapping, attribute, value), field.path)

    def insert(self, mapping: EntityMapping, fragment: str) -> InsertQuery:
        """Append a serialized entity as last child of its collection."""
        return InsertQuery(self.layout, mapping.collection, fragment)

    def delete_by_key(self, mapping: EntityMapping, code: str) -> DeleteQuery:
        return DeleteQuery(self.by_key(mapping, code))

    def delete_matching(self, mapping: EntityMapping, attribute: FieldMapping, value: str) -> DeleteQuery:
        return DeleteQuery(self.matching(mapping, attribute, value))

    def replace_attribute(self, mapping: EntityMapping, attribute: FieldMapping,
                          old_value: str, new_value: str) -> ReplaceAttributeQuery:
        """Rewrite ``attribute`` from ``old_value`` to ``new_value`` on every matching entity."""
        validate_code(new_value, f"{mapping.entity} {attribute.attribute}")
        return ReplaceAttributeQuery(self.matching(mapping, attribute, old_value),
                                     attribute.node, new_value)
