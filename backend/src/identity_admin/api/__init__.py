"""HTTP-facing identity operations."""
