"""Group-level aggregates over normalized records."""
