"""Tests for the @function directive rewriter and binding collection."""

from __future__ import annotations

import pytest
from graphql import parse, print_ast

from gateway_service.core.exceptions import DirectiveRewriteError
from gateway_service.features.gateway.directives import (
    NAMESPACE_SEPARATOR,
    collect_function_bindings,
    qualify_function_name,
    rewrite_function_directives,
)
from gateway_service.features.gateway.fragments import ExternalFunctionCall

PACKAGE_SDL = """
extend type Query {
  greet(name: String): String @function(name: "greet")
  farewell: String @deprecated(reason: "use greet") @function(name: "bye")
}

type Price {
  amount: Float @function(name: "convert")
  currency: String
}
"""


@pytest.mark.unit
class TestRewriteFunctionDirectives:
    """Namespace qualification of @function names."""

    def test_names_are_prefixed_with_the_package(self) -> None:
        rewritten = rewrite_function_directives(parse(PACKAGE_SDL), "pkgB")
        printed = print_ast(rewritten.document)

        assert '@function(name: "pkgB/greet")' in printed
        assert '@function(name: "pkgB/bye")' in printed
        assert '@function(name: "pkgB/convert")' in printed
        assert '"greet"' not in printed

    def test_other_directives_are_untouched(self) -> None:
        rewritten = rewrite_function_directives(parse(PACKAGE_SDL), "pkgB")

        assert '@deprecated(reason: "use greet")' in print_ast(rewritten.document)

    def test_annotations_record_each_occurrence(self) -> None:
        rewritten = rewrite_function_directives(parse(PACKAGE_SDL), "pkgB")

        assert [(a.target_field, a.raw_function_name) for a in rewritten.annotations] == [
            (("Query", "greet"), "greet"),
            (("Query", "farewell"), "bye"),
            (("Price", "amount"), "convert"),
        ]
        assert rewritten.annotations[0].qualified_name == "pkgB/greet"

    def test_rewrite_is_deterministic(self) -> None:
        document = parse(PACKAGE_SDL)

        first = rewrite_function_directives(document, "pkgB")
        second = rewrite_function_directives(document, "pkgB")

        assert print_ast(first.document) == print_ast(second.document)
        assert first.annotations == second.annotations

    def test_input_document_is_not_modified(self) -> None:
        document = parse(PACKAGE_SDL)
        before = print_ast(document)

        rewrite_function_directives(document, "pkgB")

        assert print_ast(document) == before

    def test_document_without_function_directives_is_unchanged(self) -> None:
        document = parse("extend type Query { plain: String }")

        rewritten = rewrite_function_directives(document, "pkgB")

        assert print_ast(rewritten.document) == print_ast(document)
        assert rewritten.annotations == ()

    def test_separator(self) -> None:
        assert NAMESPACE_SEPARATOR == "/"
        assert qualify_function_name("catalog", "getPrice") == "catalog/getPrice"


@pytest.mark.unit
class TestRewriteErrors:
    """Malformed @function usage."""

    @pytest.mark.parametrize(
        ("sdl", "reason"),
        [
            ("extend type Query { a: String @function }", "missing required 'name'"),
            ("extend type Query { a: String @function(name: 3) }", "string literal"),
            ('extend type Query { a: String @function(name: "") }', "must not be empty"),
            ('extend type Query { a: String @function(name: "a", pkg: "b") }', "unknown argument"),
        ],
    )
    def test_invalid_arguments(self, sdl: str, reason: str) -> None:
        with pytest.raises(DirectiveRewriteError) as exc_info:
            rewrite_function_directives(parse(sdl), "pkgB")

        assert reason in exc_info.value.detail
        assert exc_info.value.package == "pkgB"
        assert exc_info.value.location == "Query.a"

    def test_directive_outside_field_definition(self) -> None:
        with pytest.raises(DirectiveRewriteError, match="only allowed on field definitions"):
            rewrite_function_directives(parse('type Price @function(name: "x") { a: Int }'), "pkgB")

    def test_directive_on_input_field(self) -> None:
        with pytest.raises(DirectiveRewriteError, match="only allowed on field definitions"):
            rewrite_function_directives(
                parse('input PriceInput { a: Int @function(name: "x") }'), "pkgB"
            )


@pytest.mark.unit
class TestCollectFunctionBindings:
    """Binding collection over merged type definitions."""

    def test_collects_qualified_names(self) -> None:
        document = rewrite_function_directives(parse(PACKAGE_SDL), "pkgB").document

        bindings = collect_function_bindings(document.definitions)

        assert bindings == {
            ("Query", "greet"): ExternalFunctionCall("pkgB/greet"),
            ("Query", "farewell"): ExternalFunctionCall("pkgB/bye"),
            ("Price", "amount"): ExternalFunctionCall("pkgB/convert"),
        }

    def test_ignores_fields_without_directive(self) -> None:
        document = parse("type Query { a: String @deprecated }")

        assert collect_function_bindings(document.definitions) == {}
