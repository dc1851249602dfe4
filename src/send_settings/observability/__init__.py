"""Observability: structured logging and correlation IDs."""

from send_settings.observability.logging import correlation_scope, get_correlation_id, setup_logging

__all__ = ["correlation_scope", "get_correlation_id", "setup_logging"]
