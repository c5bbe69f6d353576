"""Core configuration, logging and token utilities."""
