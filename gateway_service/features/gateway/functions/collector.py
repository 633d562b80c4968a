"""Remote function tier: GraphQL packages published to the function runtime.

Every package contributes its own SDL. All of them are parsed after a small
base document that declares a ``Query`` root type for the packages to extend
and the ``@function`` directive they annotate fields with.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from gateway_service.core.exceptions import CompositionError
from gateway_service.features.gateway.directives import (
    FUNCTION_DIRECTIVE_SDL,
    FunctionDirectiveAnnotation,
    rewrite_function_directives,
)
from gateway_service.features.gateway.fragments import (
    PrecedenceTier,
    SchemaFragment,
    parse_type_definitions,
)

if TYPE_CHECKING:
    from graphql import DocumentNode

    from gateway_service.features.gateway.functions.runtime import FunctionRuntimeProtocol

logger = logging.getLogger(__name__)

__all__ = [
    "REMOTE_BASE_TYPE_DEFS",
    "RemoteFunctionCollector",
    "RemoteFunctionPackageDescriptor",
]

REMOTE_BASE_TYPE_DEFS = f'''
type Query {{
  """Gives remote packages a Query root type to extend. Always null."""
  _placeholder: String
}}

{FUNCTION_DIRECTIVE_SDL}
'''


@dataclass(frozen=True)
class RemoteFunctionPackageDescriptor:
    """One remote package after its ``@function`` names were qualified."""

    package_name: str
    schema_definition: DocumentNode
    annotations: tuple[FunctionDirectiveAnnotation, ...] = field(default=())


class RemoteFunctionCollector:
    """Collects the REMOTE_FUNCTION tier fragment from a runtime namespace.

    Example:
        collector = RemoteFunctionCollector(runtime)
        fragment = await collector.collect_fragment("my-namespace")
    """

    def __init__(self, runtime: FunctionRuntimeProtocol) -> None:
        self.runtime = runtime

    async def _fetch_schemas(self, namespace: str) -> list[tuple[str, str]]:
        try:
            package_names = await self.runtime.list_packages(namespace)
            schemas = await asyncio.gather(
                *(self.runtime.get_package_schema(namespace, name) for name in package_names)
            )
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            raise CompositionError(
                f"Failed listing GraphQL packages in runtime namespace '{namespace}': {e}",
                type="remote-functions-unavailable",
                extra={"namespace": namespace},
            ) from e

        found = []
        for name, schema in zip(package_names, schemas, strict=True):
            if schema is None:
                logger.debug("Skipping package without GraphQL schema", extra={"package": name})
                continue
            found.append((name, schema))
        return found

    async def collect_all(self, namespace: str) -> list[RemoteFunctionPackageDescriptor]:
        """Fetch, parse and rewrite every GraphQL package in the namespace.

        A single invalid package fails the whole step.

        Raises:
            CompositionError: If the runtime cannot be reached.
            SchemaParseError: If a package's SDL is invalid, naming the package.
            DirectiveRewriteError: If a package misuses ``@function``.
        """
        descriptors = []
        for package_name, schema in await self._fetch_schemas(namespace):
            document = parse_type_definitions(schema, PrecedenceTier.REMOTE_FUNCTION, package_name)
            rewritten = rewrite_function_directives(document, package_name)
            descriptors.append(
                RemoteFunctionPackageDescriptor(
                    package_name=package_name,
                    schema_definition=rewritten.document,
                    annotations=rewritten.annotations,
                )
            )
        return descriptors

    async def collect_fragment(self, namespace: str) -> SchemaFragment:
        """Build the REMOTE_FUNCTION fragment for the namespace.

        The base definitions come first so every package can extend ``Query``
        and use ``@function``. No resolvers are attached here: ``@function``
        fields are bound once the whole schema is composed.
        """
        descriptors = await self.collect_all(namespace)
        logger.info(
            "Found %d remote GraphQL package(s)",
            len(descriptors),
            extra={"namespace": namespace, "packages": [d.package_name for d in descriptors]},
        )

        return SchemaFragment(
            tier=PrecedenceTier.REMOTE_FUNCTION,
            type_definitions=(
                REMOTE_BASE_TYPE_DEFS,
                *(d.schema_definition for d in descriptors),
            ),
            source=namespace,
        )
