"""Helpers for promptcron."""
