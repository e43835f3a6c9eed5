"""Worker services."""
