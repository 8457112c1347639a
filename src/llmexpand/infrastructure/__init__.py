"""Infrastructure layer: backend HTTP client and in-memory documents."""
