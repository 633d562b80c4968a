"""The ``@function`` directive.

Remote function packages annotate fields with ``@function(name: "getPrice")``.
Before a package's SDL reaches the composer, the bare function name is
qualified with the package it belongs to (``catalog/getPrice``), so that
dispatch after composition never depends on which package a field came from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from graphql import (
    ArgumentNode,
    DirectiveNode,
    FieldDefinitionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    Node,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    StringValueNode,
    Visitor,
    visit,
)

from gateway_service.core.exceptions import DirectiveRewriteError
from gateway_service.features.gateway.fragments import ExternalFunctionCall, FieldKey

if TYPE_CHECKING:
    from collections.abc import Iterable

    from graphql import DocumentNode

logger = logging.getLogger(__name__)

__all__ = [
    "FUNCTION_DIRECTIVE_NAME",
    "FUNCTION_DIRECTIVE_SDL",
    "NAMESPACE_SEPARATOR",
    "FunctionDirectiveAnnotation",
    "RewrittenDocument",
    "collect_function_bindings",
    "qualify_function_name",
    "rewrite_function_directives",
]

FUNCTION_DIRECTIVE_NAME = "function"
FUNCTION_NAME_ARGUMENT = "name"
NAMESPACE_SEPARATOR = "/"

FUNCTION_DIRECTIVE_SDL = (
    f"directive @{FUNCTION_DIRECTIVE_NAME}({FUNCTION_NAME_ARGUMENT}: String!) "
    "on FIELD_DEFINITION"
)

_FIELD_OWNERS = (
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
)


def qualify_function_name(package_namespace: str, function_name: str) -> str:
    """Prefix a bare function name with the package that owns it."""
    return f"{package_namespace}{NAMESPACE_SEPARATOR}{function_name}"


@dataclass(frozen=True, slots=True)
class FunctionDirectiveAnnotation:
    """One ``@function`` occurrence found while rewriting a package."""

    target_field: FieldKey
    raw_function_name: str
    package_namespace: str

    @property
    def qualified_name(self) -> str:
        return qualify_function_name(self.package_namespace, self.raw_function_name)


@dataclass(frozen=True, slots=True)
class RewrittenDocument:
    """A package document with every ``@function`` name qualified."""

    document: DocumentNode
    annotations: tuple[FunctionDirectiveAnnotation, ...]


def _read_function_name(directive: DirectiveNode, package: str, location: str) -> str:
    arguments = {argument.name.value: argument for argument in directive.arguments or ()}
    unknown = set(arguments) - {FUNCTION_NAME_ARGUMENT}
    if unknown:
        raise DirectiveRewriteError(
            package, location, f"unknown argument(s): {', '.join(sorted(unknown))}"
        )
    argument = arguments.get(FUNCTION_NAME_ARGUMENT)
    if argument is None:
        raise DirectiveRewriteError(package, location, "missing required 'name' argument")
    if not isinstance(argument.value, StringValueNode):
        raise DirectiveRewriteError(package, location, "'name' must be a string literal")
    if not argument.value.value:
        raise DirectiveRewriteError(package, location, "'name' must not be empty")
    return argument.value.value


def _enclosing_nodes(parent: Any, ancestors: list[Any]) -> list[Node]:
    """Nodes above the current one, innermost first, skipping node lists."""
    return [node for node in reversed([*ancestors, parent]) if isinstance(node, Node)]


class _FunctionDirectiveRewriter(Visitor):
    """Rewrites ``@function(name:)`` arguments within one package document."""

    def __init__(self, package_namespace: str) -> None:
        super().__init__()
        self.package_namespace = package_namespace
        self.annotations: list[FunctionDirectiveAnnotation] = []

    def enter_directive(
        self, node: DirectiveNode, _key: Any, parent: Any, _path: Any, ancestors: list[Any]
    ) -> DirectiveNode | None:
        if node.name.value != FUNCTION_DIRECTIVE_NAME:
            return None

        enclosing = _enclosing_nodes(parent, ancestors)
        owner = enclosing[0] if enclosing else None
        if not isinstance(owner, FieldDefinitionNode):
            where = getattr(getattr(owner, "name", None), "value", "document")
            raise DirectiveRewriteError(
                self.package_namespace, where, "@function is only allowed on field definitions"
            )

        # Field definitions only occur on object and interface types
        type_node = next(n for n in enclosing if isinstance(n, _FIELD_OWNERS))
        target_field = (type_node.name.value, owner.name.value)
        location = ".".join(target_field)
        function_name = _read_function_name(node, self.package_namespace, location)

        annotation = FunctionDirectiveAnnotation(
            target_field=target_field,
            raw_function_name=function_name,
            package_namespace=self.package_namespace,
        )
        self.annotations.append(annotation)

        return DirectiveNode(
            name=node.name,
            arguments=(
                ArgumentNode(
                    name=node.arguments[0].name,
                    value=StringValueNode(value=annotation.qualified_name, block=False),
                ),
            ),
            loc=node.loc,
        )


def rewrite_function_directives(
    document: DocumentNode, package_namespace: str
) -> RewrittenDocument:
    """Qualify every ``@function`` name in a package document.

    The input document is left untouched; a rewritten copy is returned.
    Calling this twice on the same output qualifies the names twice, so run
    it exactly once, right after the package SDL is parsed.

    Args:
        document: Parsed SDL of one remote package.
        package_namespace: Name of the package that owns the document.

    Returns:
        The rewritten document and the annotations that were qualified.

    Raises:
        DirectiveRewriteError: If ``@function`` is misplaced or malformed.
    """
    rewriter = _FunctionDirectiveRewriter(package_namespace)
    rewritten = visit(document, rewriter)
    logger.debug(
        "Qualified @function directives",
        extra={
            "package": package_namespace,
            "functions": [a.qualified_name for a in rewriter.annotations],
        },
    )
    return RewrittenDocument(document=rewritten, annotations=tuple(rewriter.annotations))


def collect_function_bindings(
    type_definitions: Iterable[Node],
) -> dict[FieldKey, ExternalFunctionCall]:
    """Find every ``@function`` field in fully merged type definitions.

    Runs after composition, so fields that survived from any tier are bound,
    and the names read here are already namespace-qualified.
    """
    bindings: dict[FieldKey, ExternalFunctionCall] = {}
    for type_node in type_definitions:
        if not isinstance(type_node, _FIELD_OWNERS):
            continue
        type_name = type_node.name.value
        for field_node in type_node.fields or ():
            for directive in field_node.directives or ():
                if directive.name.value != FUNCTION_DIRECTIVE_NAME:
                    continue
                location = f"{type_name}.{field_node.name.value}"
                name = _read_function_name(directive, "composed schema", location)
                bindings[(type_name, field_node.name.value)] = ExternalFunctionCall(name)
    return bindings
