"""Analysis tools for codeql-health."""
