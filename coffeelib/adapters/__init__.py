"""Adapters (database, external tools)."""
