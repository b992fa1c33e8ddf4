"""Observability: logging configuration for the retrycase namespace."""

from .logging import JsonFormatter, configure_logging

__all__ = ["JsonFormatter", "configure_logging"]
