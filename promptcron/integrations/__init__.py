"""External service integrations for promptcron."""
