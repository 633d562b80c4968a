"""Ordered schema composition.

Fragments are layered on top of each other from the lowest precedence tier
to the highest, keeping the given order inside a tier. A later declaration of
the same (type, field) replaces the earlier one as a whole: its arguments,
type, directives and resolver all come from the later fragment. New types and
fields are added. Redeclaring a name with a different kind of type is fatal.

The composer is a pure function of its input: fragments are never mutated,
and each call returns a new ``ComposedSchema``.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from graphql import (
    DirectiveDefinitionNode,
    DirectiveNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    EnumValueDefinitionNode,
    GraphQLError,
    GraphQLSchema,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    NameNode,
    NamedTypeNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    OperationType,
    OperationTypeDefinitionNode,
    ScalarTypeDefinitionNode,
    ScalarTypeExtensionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeDefinitionNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
    build_ast_schema,
    print_schema,
    validate_schema,
)
from graphql.type.introspection import TypeKind

from gateway_service.core.exceptions import CompositionConflictError
from gateway_service.features.gateway.directives import collect_function_bindings
from gateway_service.features.gateway.execution import bind_resolvers
from gateway_service.features.gateway.fragments import (
    FieldKey,
    PrecedenceTier,
    ResolverStrategy,
    SchemaFragment,
    declared_fields,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from graphql import Node

logger = logging.getLogger(__name__)

__all__ = ["ComposedSchema", "compose"]

_KIND_BY_NODE: dict[type, TypeKind] = {
    ObjectTypeDefinitionNode: TypeKind.OBJECT,
    ObjectTypeExtensionNode: TypeKind.OBJECT,
    InterfaceTypeDefinitionNode: TypeKind.INTERFACE,
    InterfaceTypeExtensionNode: TypeKind.INTERFACE,
    InputObjectTypeDefinitionNode: TypeKind.INPUT_OBJECT,
    InputObjectTypeExtensionNode: TypeKind.INPUT_OBJECT,
    EnumTypeDefinitionNode: TypeKind.ENUM,
    EnumTypeExtensionNode: TypeKind.ENUM,
    UnionTypeDefinitionNode: TypeKind.UNION,
    UnionTypeExtensionNode: TypeKind.UNION,
    ScalarTypeDefinitionNode: TypeKind.SCALAR,
    ScalarTypeExtensionNode: TypeKind.SCALAR,
}

_TYPE_NODES = tuple(_KIND_BY_NODE)

_SPECIFIED_SCALARS = frozenset({"String", "Int", "Float", "Boolean", "ID"})

_DEFAULT_ROOT_NAMES = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}


@dataclass
class _TypeAccumulator:
    """Merged view of every declaration of one named type."""

    name: str
    kind: TypeKind
    tier: PrecedenceTier
    source: str
    definition: TypeDefinitionNode | None = None
    fields: dict[str, Any] = field(default_factory=dict)
    field_tiers: dict[str, PrecedenceTier] = field(default_factory=dict)
    interfaces: dict[str, NamedTypeNode] = field(default_factory=dict)
    directives: dict[str, DirectiveNode] = field(default_factory=dict)
    values: dict[str, EnumValueDefinitionNode] = field(default_factory=dict)
    members: dict[str, NamedTypeNode] = field(default_factory=dict)

    def absorb(self, node: Any, tier: PrecedenceTier) -> None:
        if isinstance(node, TypeDefinitionNode):
            self.definition = node
        for directive in node.directives or ():
            self.directives[directive.name.value] = directive
        for interface in getattr(node, "interfaces", None) or ():
            self.interfaces[interface.name.value] = interface
        for field_node in getattr(node, "fields", None) or ():
            self.fields[field_node.name.value] = field_node
            self.field_tiers[field_node.name.value] = tier
        for value in getattr(node, "values", None) or ():
            self.values[value.name.value] = value
        for member in getattr(node, "types", None) or ():
            self.members[member.name.value] = member

    def to_definition(self) -> TypeDefinitionNode:
        if self.definition is None:
            raise CompositionConflictError(
                f"Type '{self.name}' is extended by the {self.tier.name} fragment "
                f"'{self.source}' but never defined",
                type_name=self.name,
            )
        common = {
            "name": NameNode(value=self.name),
            "description": self.definition.description,
            "directives": tuple(self.directives.values()),
        }
        match self.kind:
            case TypeKind.OBJECT:
                return ObjectTypeDefinitionNode(
                    **common,
                    interfaces=tuple(self.interfaces.values()),
                    fields=tuple(self.fields.values()),
                )
            case TypeKind.INTERFACE:
                return InterfaceTypeDefinitionNode(
                    **common,
                    interfaces=tuple(self.interfaces.values()),
                    fields=tuple(self.fields.values()),
                )
            case TypeKind.INPUT_OBJECT:
                return InputObjectTypeDefinitionNode(**common, fields=tuple(self.fields.values()))
            case TypeKind.ENUM:
                return EnumTypeDefinitionNode(**common, values=tuple(self.values.values()))
            case TypeKind.UNION:
                return UnionTypeDefinitionNode(**common, types=tuple(self.members.values()))
            case _:
                return ScalarTypeDefinitionNode(**common)


@dataclass(frozen=True)
class ComposedSchema:
    """The single merged result handed to the serving layer.

    Attributes:
        schema: Executable graphql-core schema with every resolver bound.
        document: Merged SDL document the schema was built from.
        types: Merged type declaration per type name.
        resolvers: Surviving resolver strategy per (type name, field name).
        data_sources: Merged data sources of every fragment.
        field_tiers: Tier that owns each composed field.
        tiers: Tiers that took part in the composition, in merge order.
    """

    schema: GraphQLSchema
    document: DocumentNode
    types: Mapping[str, TypeDefinitionNode]
    resolvers: Mapping[FieldKey, ResolverStrategy]
    data_sources: Mapping[str, Any]
    field_tiers: Mapping[FieldKey, PrecedenceTier]
    tiers: tuple[PrecedenceTier, ...]

    @property
    def sdl(self) -> str:
        """Printed SDL of the composed schema."""
        return print_schema(self.schema)

    def field_counts(self) -> dict[str, int]:
        """Number of composed fields owned by each tier."""
        counts = Counter(tier.name for tier in self.field_tiers.values())
        return {tier.name: counts.get(tier.name, 0) for tier in self.tiers}


def _root_type_names(documents: Sequence[DocumentNode]) -> dict[OperationType, str]:
    """Root type name per operation as one fragment declares them.

    A ``schema`` definition names the roots explicitly. Without one, the
    conventional ``Query``/``Mutation``/``Subscription`` types are the roots.
    """
    explicit: dict[OperationType, str] = {}
    has_schema_definition = False
    named: set[str] = set()
    for document in documents:
        for definition in document.definitions:
            if isinstance(definition, SchemaDefinitionNode | SchemaExtensionNode):
                has_schema_definition = True
                for operation_type in definition.operation_types or ():
                    explicit[operation_type.operation] = operation_type.type.name.value
            elif isinstance(definition, _TYPE_NODES):
                named.add(definition.name.value)
    if has_schema_definition:
        return explicit
    return {
        operation: name for operation, name in _DEFAULT_ROOT_NAMES.items() if name in named
    }


def _composed_root_names(
    fragment_roots: Sequence[dict[OperationType, str]],
) -> dict[OperationType, str]:
    # The highest precedence fragment declaring an operation names its root
    roots: dict[OperationType, str] = {}
    for declared in fragment_roots:
        roots.update(declared)
    return roots


def _layer_fragment(
    types: dict[str, _TypeAccumulator],
    directives: dict[str, DirectiveDefinitionNode],
    renames: Mapping[str, str],
    fragment: SchemaFragment,
    documents: list[DocumentNode],
) -> None:
    for document in documents:
        for definition in document.definitions:
            if isinstance(definition, DirectiveDefinitionNode):
                directives[definition.name.value] = definition
                continue
            if isinstance(definition, SchemaDefinitionNode | SchemaExtensionNode):
                continue

            kind = _KIND_BY_NODE[type(definition)]
            name = renames.get(definition.name.value, definition.name.value)
            accumulator = types.get(name)
            if accumulator is None:
                if name in _SPECIFIED_SCALARS:
                    if kind is TypeKind.SCALAR:
                        continue
                    raise CompositionConflictError(
                        f"Type '{name}' is a built-in SCALAR but is declared as "
                        f"{kind.name} by the {fragment.tier.name} fragment '{fragment.source}'",
                        type_name=name,
                        kinds=(TypeKind.SCALAR.name, kind.name),
                    )
                accumulator = types[name] = _TypeAccumulator(
                    name=name, kind=kind, tier=fragment.tier, source=fragment.source
                )
            elif accumulator.kind is not kind:
                raise CompositionConflictError(
                    f"Type '{name}' is declared as {accumulator.kind.name} by the "
                    f"{accumulator.tier.name} fragment '{accumulator.source}' and as "
                    f"{kind.name} by the {fragment.tier.name} fragment '{fragment.source}'",
                    type_name=name,
                    kinds=(accumulator.kind.name, kind.name),
                )
            else:
                accumulator.tier = fragment.tier
                accumulator.source = fragment.source
            accumulator.absorb(definition, fragment.tier)


def _build_schema(document: DocumentNode) -> GraphQLSchema:
    try:
        schema = build_ast_schema(document)
    except (TypeError, GraphQLError) as e:
        raise CompositionConflictError(f"Composed schema is invalid: {e}") from e

    errors = validate_schema(schema)
    if errors:
        raise CompositionConflictError(
            "Composed schema is invalid: " + "; ".join(error.message for error in errors)
        )
    return schema


def compose(fragments: Sequence[SchemaFragment]) -> ComposedSchema:
    """Merge schema fragments into one executable schema.

    Fragments are applied from the lowest tier to the highest; within a
    tier, in the given order. Resolvers and data sources are merged with the
    same last-wins rule, and a field redeclared by a later fragment drops the
    resolver the earlier declaration came with, so the surviving field shape
    and resolver always come from the same fragment. ``@function`` fields are
    bound once, against the merged declarations.

    Args:
        fragments: Non-empty sequence of fragments, local fragment first.

    Returns:
        The composed schema.

    Raises:
        ValueError: If no fragment is given.
        SchemaParseError: If a fragment's type definitions are not valid SDL.
        CompositionConflictError: On incompatible redeclarations or an
            invalid merged schema.
        DirectiveRewriteError: If a surviving ``@function`` is malformed.
    """
    if not fragments:
        raise ValueError("At least one schema fragment is required")

    ordered = sorted(fragments, key=lambda fragment: fragment.tier)
    parsed = [(fragment, fragment.documents()) for fragment in ordered]
    fragment_roots = [_root_type_names(documents) for _, documents in parsed]
    root_names = _composed_root_names(fragment_roots)

    types: dict[str, _TypeAccumulator] = {}
    directives: dict[str, DirectiveDefinitionNode] = {}
    resolvers: dict[FieldKey, ResolverStrategy] = {}
    data_sources: dict[str, Any] = {}

    for (fragment, documents), declared_roots in zip(parsed, fragment_roots, strict=True):
        # Root fields are merged by operation, whatever each fragment calls its root
        renames = {
            name: root_names[operation]
            for operation, name in declared_roots.items()
            if name != root_names[operation]
        }
        _layer_fragment(types, directives, renames, fragment, documents)

        for type_name, field_name in declared_fields(documents):
            resolvers.pop((renames.get(type_name, type_name), field_name), None)
        for (type_name, field_name), strategy in fragment.field_resolvers.items():
            resolvers[(renames.get(type_name, type_name), field_name)] = strategy
        data_sources.update(fragment.data_sources)

        logger.debug(
            "Layered schema fragment",
            extra={"tier": fragment.tier.name, "source": fragment.source, "renamed": renames},
        )

    type_definitions = {name: acc.to_definition() for name, acc in types.items()}
    operation_types = [
        OperationTypeDefinitionNode(
            operation=operation, type=NamedTypeNode(name=NameNode(value=name))
        )
        for operation, name in root_names.items()
        if name in type_definitions
    ]

    definitions: list[Node] = []
    if operation_types:
        definitions.append(
            SchemaDefinitionNode(operation_types=tuple(operation_types), directives=())
        )
    definitions.extend(directives.values())
    definitions.extend(type_definitions.values())
    document = DocumentNode(definitions=tuple(definitions))

    resolvers.update(collect_function_bindings(type_definitions.values()))
    schema = _build_schema(document)
    bind_resolvers(schema, resolvers)

    field_tiers = {
        (name, field_name): tier
        for name, acc in types.items()
        for field_name, tier in acc.field_tiers.items()
    }

    composed = ComposedSchema(
        schema=schema,
        document=document,
        types=MappingProxyType(type_definitions),
        resolvers=MappingProxyType(resolvers),
        data_sources=MappingProxyType(data_sources),
        field_tiers=MappingProxyType(field_tiers),
        tiers=tuple(dict.fromkeys(fragment.tier for fragment in ordered)),
    )
    logger.info(
        "Composed schema",
        extra={
            "types": len(type_definitions),
            "fields_by_tier": composed.field_counts(),
        },
    )
    return composed
