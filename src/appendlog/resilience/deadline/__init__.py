"""Resilience – Deadline propagation via contextvars."""
from appendlog.resilience.deadline.context import DeadlineContext, deadline_aware

__all__ = ["DeadlineContext", "deadline_aware"]
