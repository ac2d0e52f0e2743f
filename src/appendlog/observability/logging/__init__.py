"""Observability – structured logging helpers."""
from appendlog.observability.logging.factory import JsonLoggerFactory
from appendlog.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
