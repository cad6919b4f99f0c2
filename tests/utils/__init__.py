"""Shared helpers for the SQLRunner test suite."""
