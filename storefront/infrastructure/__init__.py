"""Infrastructure layer - Settings and logging setup."""
