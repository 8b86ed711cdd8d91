"""Persistent routing history."""
