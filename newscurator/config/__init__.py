"""Settings and keyword configuration."""
