"""Pydantic models and scheduling value types."""
