"""Concurrent access-log analysis."""
