"""Character-level diff."""
