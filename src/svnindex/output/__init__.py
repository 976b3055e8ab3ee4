"""Reporters for changes and path data (Rich terminal, JSON)."""
