"""Domain models (value objects and entities)."""
