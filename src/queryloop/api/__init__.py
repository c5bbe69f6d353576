"""HTTP API for QueryLoop."""
