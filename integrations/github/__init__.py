"""GitHub REST integration."""
