"""Concrete store implementations, grouped by concern."""
