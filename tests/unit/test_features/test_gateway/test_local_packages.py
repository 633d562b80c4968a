"""Tests for local package discovery and merging."""

from __future__ import annotations

import pytest
from graphql import graphql_sync

from gateway_service.core.exceptions import SchemaParseError
from gateway_service.features.gateway.composer import compose
from gateway_service.features.gateway.context import GatewayContext
from gateway_service.features.gateway.fragments import PrecedenceTier
from gateway_service.features.gateway.local import (
    LocalPackageConfig,
    get_all_packages,
    merge_package_configs,
)


def resolve_one(parent, info):
    return 1


def resolve_two(parent, info):
    return 2


@pytest.mark.unit
class TestGetAllPackages:
    """Discovery of the bundled packages."""

    def test_bundled_packages_in_name_order(self) -> None:
        packages = get_all_packages("gateway_service.packages")

        assert [p.name for p in packages] == ["hello", "store"]

    def test_module_that_is_not_a_package(self) -> None:
        with pytest.raises(ImportError):
            get_all_packages("gateway_service.packages.store.data_source")

    def test_unknown_module(self) -> None:
        with pytest.raises(ImportError):
            get_all_packages("gateway_service.does_not_exist")


@pytest.mark.unit
class TestMergePackageConfigs:
    """Folding packages into the LOCAL fragment."""

    def test_names_type_defs_and_data_sources(self) -> None:
        merged = merge_package_configs(
            [
                LocalPackageConfig(
                    name="a", type_defs="type Query { a: Int }", data_sources={"x": 1}
                ),
                LocalPackageConfig(
                    name="b",
                    type_defs=["extend type Query { b: Int }", "type B { id: ID }"],
                    data_sources={"x": 2, "y": 3},
                ),
            ]
        )

        assert merged.names == ("a", "b")
        assert len(merged.type_defs) == 3
        assert dict(merged.data_sources) == {"x": 2, "y": 3}

    def test_later_package_redeclaring_a_field_drops_earlier_resolver(self) -> None:
        merged = merge_package_configs(
            [
                LocalPackageConfig(
                    name="a",
                    type_defs="type Query { value: Int }",
                    resolvers={"Query": {"value": resolve_one}},
                ),
                LocalPackageConfig(name="b", type_defs="extend type Query { value: Int }"),
            ]
        )

        assert ("Query", "value") not in merged.resolvers

    def test_later_package_resolver_wins(self) -> None:
        merged = merge_package_configs(
            [
                LocalPackageConfig(
                    name="a",
                    type_defs="type Query { value: Int }",
                    resolvers={"Query": {"value": resolve_one}},
                ),
                LocalPackageConfig(
                    name="b",
                    type_defs="extend type Query { value: Int }",
                    resolvers={"Query": {"value": resolve_two}},
                ),
            ]
        )

        result = graphql_sync(compose([merged.to_fragment()]).schema, "{ value }")

        assert result.data == {"value": 2}

    def test_parse_error_names_the_package(self) -> None:
        with pytest.raises(SchemaParseError) as exc_info:
            merge_package_configs([LocalPackageConfig(name="broken", type_defs="type Query {")])

        assert exc_info.value.source == "broken"
        assert exc_info.value.tier is PrecedenceTier.LOCAL

    def test_fragment_is_local_tier(self) -> None:
        fragment = merge_package_configs(get_all_packages("gateway_service.packages")).to_fragment()

        assert fragment.tier is PrecedenceTier.LOCAL
        assert "store" in fragment.data_sources


@pytest.mark.unit
def test_bundled_packages_resolve() -> None:
    """The bundled hello and store packages serve their fields."""
    merged = merge_package_configs(get_all_packages("gateway_service.packages"))
    composed = compose([merged.to_fragment()])

    result = graphql_sync(
        composed.schema,
        "{ hello storeInfo { code currency } }",
        context_value=GatewayContext(data_sources=dict(composed.data_sources)),
    )

    assert result.errors is None
    assert result.data == {"hello": "world", "storeInfo": {"code": "default", "currency": "USD"}}
