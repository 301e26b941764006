"""Command-line client."""
