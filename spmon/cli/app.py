"""Main Typer application — imports and registers all CLI commands.

Entry point: ``spmon`` (configured via pyproject.toml [project.scripts]).
"""

from __future__ import annotations

import typer

from spmon.cli.commands.decode_cmd import decode_cmd
from spmon.cli.commands.monitor_cmd import monitor_cmd
from spmon.cli.commands.rebirth_cmd import rebirth_cmd

app = typer.Typer(
    name="spmon",
    help="spmon: live MQTT monitor with Sparkplug B decoding.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="monitor", help="Show live MQTT traffic with Sparkplug B decoding.")(monitor_cmd)
app.command(name="decode", help="Decode a single Sparkplug B payload.")(decode_cmd)
app.command(name="rebirth", help="Publish a Node Control/Rebirth command.")(rebirth_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
