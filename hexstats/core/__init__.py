"""Core infrastructure: configuration, database, cache, scheduler."""
