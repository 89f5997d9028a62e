"""``spmon decode`` — decode one Sparkplug B payload offline.

Takes the payload as a hex string or from a binary file and prints the same
detail view the live monitor shows.  On a decode error the partial result is
still printed and the command exits with code 1.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import typer
from rich.console import Console

from spmon.core.topics import classify_topic
from spmon.models.messages import RawMessage
from spmon.monitor.projection import detail_for
from spmon.monitor.renderer import MonitorRenderer

console = Console()


def decode_cmd(
    hex_payload: str = typer.Argument(
        None,
        help="Payload as a hex string (whitespace ignored).",
    ),
    file: Path = typer.Option(
        None,
        "--file",
        "-f",
        help="Read the raw payload bytes from a file instead.",
    ),
    topic: str = typer.Option(
        "spBv1.0/offline/NDATA/local",
        "--topic",
        help="Topic to classify the payload under.",
    ),
) -> None:
    """Decode a single payload and print its metrics."""
    if file is not None:
        if not file.exists():
            console.print(f"[bold red]File not found:[/bold red] {file}")
            raise typer.Exit(code=1)
        data = file.read_bytes()
    elif hex_payload:
        try:
            data = bytes.fromhex("".join(hex_payload.split()))
        except ValueError as exc:
            console.print(f"[bold red]Invalid hex payload:[/bold red] {exc}")
            raise typer.Exit(code=1)
    else:
        console.print("[bold red]Provide a hex payload or --file.[/bold red]")
        raise typer.Exit(code=1)

    message = RawMessage(
        received_at=datetime.now(timezone.utc),
        topic=topic,
        payload=data,
        category=classify_topic(topic),
    )
    detail = detail_for(message)
    MonitorRenderer(console=console).print_detail(detail)
    if detail.error is not None:
        raise typer.Exit(code=1)
