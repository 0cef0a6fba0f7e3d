"""Serialization and document store adapters."""
