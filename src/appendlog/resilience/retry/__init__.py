"""Resilience – retrying appends that failed for transient reasons."""
from appendlog.resilience.retry.backoff import Backoff
from appendlog.resilience.retry.policy import RetryPolicy

__all__ = ["Backoff", "RetryPolicy"]
