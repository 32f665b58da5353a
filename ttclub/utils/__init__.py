"""Shared utilities: configuration, geometry and signal helpers."""
