"""Application use cases grouped by feature."""
