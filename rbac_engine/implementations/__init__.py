"""Concrete backend implementations."""
