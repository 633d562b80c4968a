"""Schema fragments and per-field resolver strategies.

A fragment is one origin's contribution to the composed schema: its SDL
documents, the resolvers it brings for its own fields, its data sources, and
the precedence tier that decides who wins when two origins declare the same
field.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from graphql import (
    DocumentNode,
    ExecutableDefinitionNode,
    GraphQLSyntaxError,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    parse,
)

from gateway_service.core.exceptions import SchemaParseError

if TYPE_CHECKING:
    from graphql import GraphQLSchema

    from gateway_service.features.gateway.monolith.executor import MonolithExecutor

__all__ = [
    "ExternalFunctionCall",
    "FieldKey",
    "LocalFunction",
    "PrecedenceTier",
    "RemoteDelegate",
    "ResolverStrategy",
    "SchemaFragment",
    "declared_fields",
    "parse_type_definitions",
]

FieldKey = tuple[str, str]

_FIELD_CONTAINERS = (
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
)


class PrecedenceTier(IntEnum):
    """Origin tiers, ordered from lowest to highest precedence."""

    LOCAL = 0
    REMOTE_FUNCTION = 1
    MONOLITH = 2


# ============================================================================
# Resolver strategies
# ============================================================================


@dataclass(frozen=True, slots=True)
class LocalFunction:
    """Field resolved in-process by a plain graphql-core resolver."""

    handler: Callable[..., Any]


@dataclass(frozen=True, slots=True, eq=False)
class RemoteDelegate:
    """Field owned by the legacy API.

    Root fields forward the request to the legacy endpoint; nested fields
    read their value out of the proxied response.
    """

    executor: MonolithExecutor
    remote_schema: GraphQLSchema
    root_operation: OperationType | None = None

    @property
    def is_root(self) -> bool:
        return self.root_operation is not None


@dataclass(frozen=True, slots=True)
class ExternalFunctionCall:
    """Field resolved by invoking an externally hosted function."""

    qualified_name: str


ResolverStrategy = LocalFunction | RemoteDelegate | ExternalFunctionCall


# ============================================================================
# Fragments
# ============================================================================


def parse_type_definitions(
    type_definition: str | DocumentNode,
    tier: PrecedenceTier,
    source: str,
) -> DocumentNode:
    """Parse one SDL document, rejecting anything that is not type system SDL.

    Raises:
        SchemaParseError: If the SDL has a syntax error or contains operations.
    """
    if isinstance(type_definition, DocumentNode):
        document = type_definition
    else:
        try:
            document = parse(type_definition)
        except GraphQLSyntaxError as e:
            raise SchemaParseError(tier, source, e.message) from e

    for definition in document.definitions:
        if isinstance(definition, ExecutableDefinitionNode):
            raise SchemaParseError(
                tier,
                source,
                f"executable definition '{definition.kind}' is not allowed in type definitions",
            )
    return document


def declared_fields(documents: Iterable[DocumentNode]) -> Iterator[FieldKey]:
    """Yield every (type name, field name) pair declared by the documents."""
    for document in documents:
        for definition in document.definitions:
            if isinstance(definition, _FIELD_CONTAINERS):
                type_name = definition.name.value
                for field_node in definition.fields or ():
                    yield type_name, field_node.name.value


@dataclass(frozen=True)
class SchemaFragment:
    """One origin's contribution to the composed schema.

    Attributes:
        tier: Precedence tier of the origin.
        type_definitions: SDL strings or parsed documents, in declaration order.
        field_resolvers: Strategy per (type name, field name).
        data_sources: Named data source instances exposed to resolvers.
        source: Human-readable label used in logs and errors.
    """

    tier: PrecedenceTier
    type_definitions: tuple[str | DocumentNode, ...]
    field_resolvers: Mapping[FieldKey, ResolverStrategy] = field(default_factory=dict)
    data_sources: Mapping[str, Any] = field(default_factory=dict)
    source: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_definitions", tuple(self.type_definitions))
        object.__setattr__(self, "field_resolvers", MappingProxyType(dict(self.field_resolvers)))
        object.__setattr__(self, "data_sources", MappingProxyType(dict(self.data_sources)))
        if not self.source:
            object.__setattr__(self, "source", self.tier.name.lower())

    def documents(self) -> list[DocumentNode]:
        """Parse the fragment's type definitions.

        Raises:
            SchemaParseError: Naming this fragment's tier on the first invalid document.
        """
        return [
            parse_type_definitions(type_definition, self.tier, self.source)
            for type_definition in self.type_definitions
        ]
