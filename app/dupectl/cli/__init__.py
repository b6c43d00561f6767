"""Command-line interface for dupectl."""
