"""Forwarding root field selections to the legacy API.

For a root field owned by the monolith tier, the selection the client asked
for is cut out of the incoming operation and sent on unchanged, except for:

- fields and fragments the legacy schema does not know (added by lower
  tiers on shared types) are dropped; their resolvers run afterwards on the
  proxied value,
- ``__typename`` is requested on every nested selection so abstract types
  resolve on the gateway side,
- only the variables the forwarded document still uses are sent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from graphql import (
    REMOVE,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLError,
    NameNode,
    OperationDefinitionNode,
    SelectionSetNode,
    TypeInfo,
    TypeInfoVisitor,
    Visitor,
    print_ast,
    visit,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from graphql import GraphQLResolveInfo, GraphQLSchema, Node

    from gateway_service.features.gateway.fragments import RemoteDelegate

logger = logging.getLogger(__name__)

__all__ = ["build_delegated_document", "delegate_to_monolith"]

TYPENAME_FIELD = "__typename"


class _NameCollector(Visitor):
    """Collects fragment spread and variable names below a set of nodes."""

    def __init__(self) -> None:
        super().__init__()
        self.fragments: set[str] = set()
        self.variables: set[str] = set()

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args: Any) -> None:
        self.fragments.add(node.name.value)

    def enter_variable(self, node: Any, *_args: Any) -> None:
        self.variables.add(node.name.value)


def _collect_names(nodes: Iterable[Node]) -> _NameCollector:
    collector = _NameCollector()
    for node in nodes:
        visit(node, collector)
    return collector


def _referenced_fragments(
    field_nodes: Iterable[FieldNode], fragments: Mapping[str, FragmentDefinitionNode]
) -> list[FragmentDefinitionNode]:
    """Fragment definitions reachable from the field nodes, in first-seen order."""
    pending = sorted(_collect_names(field_nodes).fragments)
    found: dict[str, FragmentDefinitionNode] = {}
    while pending:
        name = pending.pop()
        if name in found or name not in fragments:
            continue
        found[name] = fragments[name]
        pending.extend(sorted(_collect_names([fragments[name]]).fragments))
    return list(found.values())


class _RemoteSelectionFilter(Visitor):
    """Drops selections the remote schema cannot answer.

    Must run wrapped in a ``TypeInfoVisitor`` over the remote schema.
    """

    def __init__(
        self,
        type_info: TypeInfo,
        remote_schema: GraphQLSchema,
        fragments: Iterable[FragmentDefinitionNode],
    ) -> None:
        super().__init__()
        self.type_info = type_info
        self.remote_schema = remote_schema
        self.removed_fragments = {
            fragment.name.value
            for fragment in fragments
            if not self._knows_type(fragment.type_condition)
        }

    def _knows_type(self, type_condition: Any) -> bool:
        if type_condition is None:
            return True
        return self.remote_schema.get_type(type_condition.name.value) is not None

    def enter_fragment_definition(self, node: FragmentDefinitionNode, *_args: Any) -> Any:
        return REMOVE if node.name.value in self.removed_fragments else None

    def enter_inline_fragment(self, node: Any, *_args: Any) -> Any:
        return None if self._knows_type(node.type_condition) else REMOVE

    def enter_fragment_spread(self, node: FragmentSpreadNode, *_args: Any) -> Any:
        return REMOVE if node.name.value in self.removed_fragments else None

    def enter_field(self, node: FieldNode, *_args: Any) -> Any:
        if self.type_info.get_field_def() is None:
            logger.debug(
                "Dropping field unknown to legacy schema", extra={"field": node.name.value}
            )
            return REMOVE
        return None

    def leave_selection_set(
        self, node: SelectionSetNode, _key: Any, parent: Any, *_args: Any
    ) -> Any:
        if isinstance(parent, OperationDefinitionNode):
            return None
        has_typename = any(
            isinstance(selection, FieldNode)
            and selection.alias is None
            and selection.name.value == TYPENAME_FIELD
            for selection in node.selections
        )
        if has_typename:
            return None
        return SelectionSetNode(
            selections=(*node.selections, FieldNode(name=NameNode(value=TYPENAME_FIELD))),
        )


def build_delegated_document(
    info: GraphQLResolveInfo, remote_schema: GraphQLSchema
) -> tuple[DocumentNode, dict[str, Any]]:
    """Cut the current root field out of the incoming operation.

    Args:
        info: Resolve info of the root field being delegated.
        remote_schema: Introspected legacy schema.

    Returns:
        The document to forward and the variable values it references.
    """
    fragments = _referenced_fragments(info.field_nodes, info.fragments)
    operation = OperationDefinitionNode(
        operation=info.operation.operation,
        name=info.operation.name,
        variable_definitions=info.operation.variable_definitions,
        directives=(),
        selection_set=SelectionSetNode(selections=tuple(info.field_nodes)),
    )
    document = DocumentNode(definitions=(operation, *fragments))

    type_info = TypeInfo(remote_schema)
    selection_filter = _RemoteSelectionFilter(type_info, remote_schema, fragments)
    filtered = visit(document, TypeInfoVisitor(type_info, selection_filter))

    used_variables = _collect_names(
        definition.selection_set for definition in filtered.definitions
    ).variables
    definitions = []
    for definition in filtered.definitions:
        if isinstance(definition, OperationDefinitionNode):
            definition = OperationDefinitionNode(
                operation=definition.operation,
                name=definition.name,
                variable_definitions=tuple(
                    variable_definition
                    for variable_definition in definition.variable_definitions or ()
                    if variable_definition.variable.name.value in used_variables
                ),
                directives=definition.directives,
                selection_set=definition.selection_set,
            )
        definitions.append(definition)

    variables = {
        name: value
        for name, value in (info.variable_values or {}).items()
        if name in used_variables
    }
    return DocumentNode(definitions=tuple(definitions)), variables


async def delegate_to_monolith(strategy: RemoteDelegate, info: GraphQLResolveInfo) -> Any:
    """Resolve a monolith-owned root field by forwarding it.

    Raises:
        GraphQLError: If the call fails, or the legacy API reports errors and
            returns no value for the field.
    """
    document, variables = build_delegated_document(info, strategy.remote_schema)
    operation_name = info.operation.name.value if info.operation.name else None

    try:
        body = await strategy.executor.execute(print_ast(document), variables, operation_name)
    except (httpx.HTTPError, ValueError) as e:
        raise GraphQLError(f"Legacy GraphQL API request failed: {e}", original_error=e) from e

    response_key = info.path.key
    data = body.get("data") or {}
    value = data.get(response_key)
    errors = body.get("errors") or []

    if errors and value is None:
        first = errors[0] if isinstance(errors[0], dict) else {"message": str(errors[0])}
        raise GraphQLError(
            first.get("message", "Legacy GraphQL API returned an error"),
            extensions=first.get("extensions"),
        )
    if errors:
        messages = [error.get("message") for error in errors if isinstance(error, dict)]
        logger.warning(
            "Legacy GraphQL API returned partial errors",
            extra={"field": response_key, "errors": messages},
        )
    return value
