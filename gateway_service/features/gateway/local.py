"""Local tier: in-process schema packages.

A local package is a module (usually a sub-package of
``gateway_service.packages``) exposing a module-level ``PACKAGE``:

    PACKAGE = LocalPackageConfig(
        name="hello",
        type_defs="type Query { hello: String }",
        resolvers={"Query": {"hello": resolve_hello}},
    )

Resolvers follow graphql-core's ``(parent, info, **args)`` signature.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from graphql import DocumentNode

from gateway_service.features.gateway.fragments import (
    FieldKey,
    LocalFunction,
    PrecedenceTier,
    SchemaFragment,
    declared_fields,
    parse_type_definitions,
)

logger = logging.getLogger(__name__)

__all__ = [
    "PACKAGE_ATTRIBUTE",
    "LocalPackageConfig",
    "MergedPackageConfigs",
    "get_all_packages",
    "merge_package_configs",
]

PACKAGE_ATTRIBUTE = "PACKAGE"

ResolverMap = Mapping[str, Mapping[str, Callable[..., Any]]]


@dataclass(frozen=True)
class LocalPackageConfig:
    """Schema, resolvers and data sources of one in-process package."""

    name: str
    type_defs: str | DocumentNode | Sequence[str | DocumentNode]
    resolvers: ResolverMap = field(default_factory=dict)
    data_sources: Mapping[str, Any] = field(default_factory=dict)

    def type_definitions(self) -> tuple[str | DocumentNode, ...]:
        if isinstance(self.type_defs, str | DocumentNode):
            return (self.type_defs,)
        return tuple(self.type_defs)


@dataclass(frozen=True)
class MergedPackageConfigs:
    """Every local package folded into one."""

    names: tuple[str, ...]
    type_defs: tuple[DocumentNode, ...]
    resolvers: Mapping[FieldKey, LocalFunction]
    data_sources: Mapping[str, Any]

    def to_fragment(self) -> SchemaFragment:
        """The LOCAL tier fragment for composition."""
        return SchemaFragment(
            tier=PrecedenceTier.LOCAL,
            type_definitions=self.type_defs,
            field_resolvers=self.resolvers,
            data_sources=self.data_sources,
            source="local packages",
        )


def get_all_packages(module_name: str) -> list[LocalPackageConfig]:
    """Import every direct sub-module of a package and read its ``PACKAGE``.

    Sub-modules are visited in name order, which is also the order their
    declarations are merged in. Modules without a ``PACKAGE`` are skipped.

    Raises:
        ImportError: If the package or one of its sub-modules fails to import.
        TypeError: If a ``PACKAGE`` attribute is not a ``LocalPackageConfig``.
    """
    root = importlib.import_module(module_name)
    search_path = getattr(root, "__path__", None)
    if search_path is None:
        raise ImportError(f"'{module_name}' is a module, not a package of local packages")

    configs = []
    for module_info in sorted(pkgutil.iter_modules(search_path), key=lambda m: m.name):
        if module_info.name.startswith("_"):
            continue
        module = importlib.import_module(f"{module_name}.{module_info.name}")
        config = getattr(module, PACKAGE_ATTRIBUTE, None)
        if config is None:
            logger.debug(
                "Skipping module without %s", PACKAGE_ATTRIBUTE, extra={"module": module.__name__}
            )
            continue
        if not isinstance(config, LocalPackageConfig):
            raise TypeError(
                f"{module.__name__}.{PACKAGE_ATTRIBUTE} must be a LocalPackageConfig, "
                f"got {type(config).__name__}"
            )
        configs.append(config)
    return configs


def merge_package_configs(configs: Sequence[LocalPackageConfig]) -> MergedPackageConfigs:
    """Fold local packages into one, later packages winning.

    A field declared again by a later package drops the resolver an earlier
    package registered for it; the later package's own resolvers are then
    applied on top.

    Raises:
        SchemaParseError: If a package's type definitions are invalid,
            naming the package.
    """
    type_defs: list[DocumentNode] = []
    resolvers: dict[FieldKey, LocalFunction] = {}
    data_sources: dict[str, Any] = {}

    for config in configs:
        documents = [
            parse_type_definitions(type_definition, PrecedenceTier.LOCAL, config.name)
            for type_definition in config.type_definitions()
        ]
        type_defs.extend(documents)

        for key in declared_fields(documents):
            resolvers.pop(key, None)
        for type_name, field_resolvers in config.resolvers.items():
            for field_name, handler in field_resolvers.items():
                resolvers[(type_name, field_name)] = LocalFunction(handler)
        data_sources.update(config.data_sources)

    return MergedPackageConfigs(
        names=tuple(config.name for config in configs),
        type_defs=tuple(type_defs),
        resolvers=resolvers,
        data_sources=data_sources,
    )
