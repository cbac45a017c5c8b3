"""Pydantic schemas for UCloud API records and responses."""
