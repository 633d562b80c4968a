"""Logging infrastructure.

Basic usage:
    from gateway_service.infra.logging import setup_logging
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Composing schema", extra={"tiers": ["LOCAL", "MONOLITH"]})
"""

from gateway_service.infra.logging.config import configure_logging, setup_logging
from gateway_service.infra.logging.formatters import JSONFormatter

__all__ = ["JSONFormatter", "configure_logging", "setup_logging"]
