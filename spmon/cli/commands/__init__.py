"""Typer subcommand implementations."""
