"""Resilience – deadlines for the atomic append unit and retry of transient failures."""
