"""Command-line interface for OpenStream."""
