"""Ports shared between repositories and their callers."""
