"""Timely - personal time tracking with pause-aware durations and overtime."""
