"""TypeScope HTTP API."""
