"""Custom exception classes for the gateway.

Two families live here:

- ``AppException`` and its HTTP-facing subclasses, used by the serving layer.
- ``CompositionError`` and its subclasses, raised while the composed schema is
  being built. Every one of them is fatal at startup: the process must refuse
  to serve a partially composed or unverified schema.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gateway_service.features.gateway.fragments import PrecedenceTier


class AppException(Exception):
    """Base application exception.

    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code."""
        titles = {
            400: "Bad Request",
            404: "Not Found",
            422: "Unprocessable Entity",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")

    def to_problem_details(self) -> dict[str, Any]:
        """Render the exception as an RFC 7807 problem details body."""
        body: dict[str, Any] = {
            "type": self.type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.instance:
            body["instance"] = self.instance
        if self.extra:
            body.update(self.extra)
        return body


class BadRequestException(AppException):
    """Exception raised for malformed client requests.

    Example:
        raise BadRequestException(detail="Request body must contain a 'query' string")
    """

    def __init__(
        self,
        detail: str,
        type: str = "bad-request",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Bad Request",
            instance=instance,
            extra=extra,
        )


class SchemaNotReadyException(AppException):
    """Exception raised when a request arrives before the schema is composed."""

    def __init__(
        self,
        detail: str = "The composed GraphQL schema is not ready",
        instance: str | None = None,
    ) -> None:
        super().__init__(
            status_code=503,
            detail=detail,
            type="schema-not-ready",
            title="Service Unavailable",
            instance=instance,
        )


# ============================================================================
# Composition Exceptions (startup-time, fatal)
# ============================================================================


class CompositionError(AppException):
    """Base class for errors raised while composing the gateway schema.

    The serving layer never sees these at request time; they abort startup.
    """

    def __init__(
        self,
        detail: str,
        type: str = "composition-error",
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Schema Composition Failed",
            extra=extra,
        )


class SchemaParseError(CompositionError):
    """Raised when a fragment's type definitions are not valid SDL.

    Example:
        raise SchemaParseError(
            tier=PrecedenceTier.LOCAL,
            source="hello",
            reason="Syntax Error: Expected Name, found '}'.",
        )
    """

    def __init__(self, tier: PrecedenceTier, source: str, reason: str) -> None:
        self.tier = tier
        self.source = source
        super().__init__(
            detail=f"Invalid type definitions in {tier.name} fragment '{source}': {reason}",
            type="schema-parse-error",
            extra={"tier": tier.name, "source": source},
        )


class MonolithUnreachableError(CompositionError):
    """Raised when the legacy GraphQL API cannot be introspected.

    The original cause is chained via ``raise ... from`` and also kept on
    ``cause`` for callers that only hold the exception object.
    """

    def __init__(self, endpoint_url: str, cause: BaseException) -> None:
        self.endpoint_url = endpoint_url
        self.cause = cause
        super().__init__(
            detail=(
                f'Failed introspecting remote legacy schema at "{endpoint_url}": {cause}. '
                "Make sure that GATEWAY_LEGACY_GRAPHQL_URL is set to the correct "
                "value for your legacy instance"
            ),
            type="monolith-unreachable",
            extra={"endpoint_url": endpoint_url},
        )


class MonolithCompatibilityError(CompositionError):
    """Raised when the introspected legacy schema lacks a required marker."""

    def __init__(
        self,
        detail: str,
        *,
        missing_type: str,
        missing_field: str | None = None,
        minimum_version: str,
    ) -> None:
        self.missing_type = missing_type
        self.missing_field = missing_field
        self.minimum_version = minimum_version
        super().__init__(
            detail=detail,
            type="monolith-incompatible",
            extra={
                "missing_type": missing_type,
                "missing_field": missing_field,
                "minimum_version": minimum_version,
            },
        )


class DirectiveRewriteError(CompositionError):
    """Raised when a ``@function`` directive is used in an unsupported way."""

    def __init__(self, package: str, location: str, reason: str) -> None:
        self.package = package
        self.location = location
        super().__init__(
            detail=f"Invalid @function usage in package '{package}' at {location}: {reason}",
            type="directive-rewrite-error",
            extra={"package": package, "location": location},
        )


class CompositionConflictError(CompositionError):
    """Raised when fragments declare incompatible shapes for the same name."""

    def __init__(
        self,
        detail: str,
        *,
        type_name: str | None = None,
        kinds: tuple[str, str] | None = None,
    ) -> None:
        self.type_name = type_name
        self.kinds = kinds
        extra: dict[str, Any] = {}
        if type_name:
            extra["type_name"] = type_name
        if kinds:
            extra["kinds"] = list(kinds)
        super().__init__(detail=detail, type="composition-conflict", extra=extra)


__all__ = [
    "AppException",
    "BadRequestException",
    "CompositionConflictError",
    "CompositionError",
    "DirectiveRewriteError",
    "MonolithCompatibilityError",
    "MonolithUnreachableError",
    "SchemaNotReadyException",
    "SchemaParseError",
]
