"""CLI command modules."""

from crumb.cli.commands import export, profile, secrets

__all__ = ["export", "profile", "secrets"]
