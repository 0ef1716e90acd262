"""Prompting, calling, parsing and gating of situation suggestions."""
