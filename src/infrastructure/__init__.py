"""Infrastructure adapters (HTTP)."""
