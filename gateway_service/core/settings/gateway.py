"""Gateway composition settings.

Controls which tiers take part in the composed schema and where their
origins live. Environment variables use GATEWAY_ prefix.

Environment Variables:
    GATEWAY_ENABLE_IO_FUNCTIONS=true          # Compose remote function packages
    GATEWAY_IO_NAMESPACE=my-namespace         # Namespace the packages are published under
    GATEWAY_IO_API_HOST=https://adobeioruntime.net
    GATEWAY_IO_API_KEY=user:password          # Runtime API key (basic auth)
    GATEWAY_LEGACY_GRAPHQL_URL=https://shop.example.com/graphql
"""

from __future__ import annotations

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Schema composition settings.

    Environment variables use GATEWAY_ prefix.
    Example: GATEWAY_LEGACY_GRAPHQL_URL=http://localhost:8080/graphql
    """

    # ──────────────────────────────────────────────────────────────
    # Local tier
    # ──────────────────────────────────────────────────────────────

    local_packages_module: str = Field(
        default="gateway_service.packages",
        min_length=1,
        description="Dotted path of the package whose sub-modules are local schema packages",
    )

    # ──────────────────────────────────────────────────────────────
    # Remote function tier
    # ──────────────────────────────────────────────────────────────

    enable_io_functions: bool = Field(
        default=False,
        description="Compose GraphQL packages published to the function runtime",
    )

    io_namespace: str | None = Field(
        default=None,
        description="Runtime namespace to discover GraphQL function packages in",
    )

    io_api_host: str = Field(
        default="https://adobeioruntime.net",
        pattern=r"^https?://.+",
        description="Base URL of the function runtime REST API",
    )

    io_api_key: SecretStr | None = Field(
        default=None,
        description="Runtime API key in 'user:password' form, sent as HTTP basic auth",
    )

    io_schema_annotation: str = Field(
        default="graphql-schema",
        min_length=1,
        description="Package annotation that carries the package's GraphQL SDL",
    )

    # ──────────────────────────────────────────────────────────────
    # Monolith tier
    # ──────────────────────────────────────────────────────────────

    legacy_graphql_url: str | None = Field(
        default=None,
        description="GraphQL endpoint of the legacy application; enables the monolith tier",
    )

    monolith_introspection_descriptions: bool = Field(
        default=True,
        description="Request type and field descriptions when introspecting the legacy API",
    )

    # ──────────────────────────────────────────────────────────────
    # Outbound calls
    # ──────────────────────────────────────────────────────────────

    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Transport timeout in seconds for every delegated call",
    )

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @model_validator(mode="after")
    def _validate_functions_namespace(self) -> GatewaySettings:
        """Remote functions cannot be discovered without a namespace."""
        if self.enable_io_functions and not self.io_namespace:
            raise ValueError("io_namespace is required when enable_io_functions is true")
        return self

    @property
    def functions_enabled(self) -> bool:
        """Check if the remote function tier takes part in composition."""
        return self.enable_io_functions

    @property
    def monolith_enabled(self) -> bool:
        """Check if the monolith tier takes part in composition."""
        return bool(self.legacy_graphql_url)

    def get_io_auth(self) -> tuple[str, str] | None:
        """Split the runtime API key into a basic auth pair.

        Returns:
            ``(user, password)`` or None when no key is configured.
        """
        if self.io_api_key is None:
            return None
        user, _, password = self.io_api_key.get_secret_value().partition(":")
        return user, password
