"""Command-line interface for seedwise."""
