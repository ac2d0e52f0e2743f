"""Kernel – errors, result types, identifiers and clocks shared by every layer."""
