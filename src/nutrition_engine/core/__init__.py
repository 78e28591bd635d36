"""Core infrastructure: configuration loading."""
