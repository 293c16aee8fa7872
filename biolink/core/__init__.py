"""Core infrastructure: configuration, storage, observability and security."""
