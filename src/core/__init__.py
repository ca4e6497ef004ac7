"""Shared models, text validation and edit distance."""
