"""Resilience – deadlines."""
from appendlog.resilience.timeouts.deadline import Deadline

__all__ = ["Deadline"]
