"""Infrastructure layer - configuration, database engine and logging."""
