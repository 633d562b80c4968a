"""Infrastructure shared by the gateway: logging and metrics."""
