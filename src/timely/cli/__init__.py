"""Command-line interface for Timely."""
