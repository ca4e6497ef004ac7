"""Operational logging setup."""
