"""Shared helpers for the scale command."""
