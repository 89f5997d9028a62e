"""spmon CLI — Typer-based command-line interface.

Provides the ``spmon`` command with subcommands for live monitoring,
offline payload decoding and one-shot rebirth commands.

All output uses Rich for formatted terminal display.
"""
