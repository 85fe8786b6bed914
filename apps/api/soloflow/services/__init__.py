"""Data-access and integration services."""
