"""Bounded diagnostic cache."""
