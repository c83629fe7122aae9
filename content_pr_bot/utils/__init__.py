"""Shared utilities: structured logging setup and HTTP connection pooling."""
