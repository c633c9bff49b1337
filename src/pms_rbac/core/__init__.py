"""Core infrastructure: configuration constants, errors, logging, database, permissions."""
