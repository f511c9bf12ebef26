"""Shared helpers for the rebecca test suite."""
