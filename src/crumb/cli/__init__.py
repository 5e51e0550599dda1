"""Command-line interface for crumb."""
