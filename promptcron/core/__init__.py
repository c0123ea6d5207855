"""Core logic for promptcron: errors, logging, retry policy and execution."""
