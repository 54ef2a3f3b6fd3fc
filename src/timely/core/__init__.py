"""Core session lifecycle, persistence and aggregation."""
