"""Invisible-character analysis and report rendering."""
