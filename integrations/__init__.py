"""External service integrations for codeql-health."""
