"""Fuzzy substring location."""
