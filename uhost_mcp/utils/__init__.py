"""Shared utilities (request correlation, partial results)."""
