"""Domain models and sqlite storage."""
