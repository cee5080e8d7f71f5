"""HTTP API for Clipgate."""
