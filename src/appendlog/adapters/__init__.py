"""Adapters – concrete persistence backends for the append path."""
