"""Command-line interface for agent-certs."""
