"""Utility helpers shared across warmpath services."""
