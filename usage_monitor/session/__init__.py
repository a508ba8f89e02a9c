"""Locally persisted panel state."""
