"""``spmon rebirth`` — publish one Node Control/Rebirth command and exit."""

from __future__ import annotations

import threading

import typer
from rich.console import Console

from spmon.bridge.transport import MqttTransport, TransportError
from spmon.config import config, configure_logging
from spmon.core.topics import ncmd_topic
from spmon.sparkplug.encode import encode_ncmd_rebirth

console = Console()


def rebirth_cmd(
    group: str = typer.Option(None, "--group", "-g", help="Sparkplug B Group ID."),
    node: str = typer.Option(None, "--node", "-n", help="Sparkplug B Edge Node ID."),
    broker: str = typer.Option(None, "--broker", "-b", help="MQTT broker host:port."),
    timeout: float = typer.Option(
        10.0,
        "--timeout",
        help="Seconds to wait for the broker connection and publish.",
    ),
) -> None:
    """Ask an edge node to resend its full state (NBIRTH/DBIRTH)."""
    broker = broker or config.broker
    topic = ncmd_topic(group or config.group, node or config.node)
    configure_logging(config.log_level)

    connected = threading.Event()

    def on_connectivity(up: bool) -> None:
        if up:
            connected.set()

    try:
        transport = MqttTransport(
            broker,
            [],
            client_id_prefix=config.client_id_prefix,
            reconnect_interval_seconds=config.reconnect_interval_seconds,
        )
    except TransportError as exc:
        console.print(f"[bold red]Transport error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    with transport:
        transport.start(lambda *_: None, on_connectivity)
        if not connected.wait(timeout):
            console.print(f"[bold red]Could not connect to {broker} within {timeout:.0f}s.[/bold red]")
            raise typer.Exit(code=1)
        try:
            info = transport.publish(topic, encode_ncmd_rebirth(), qos=0, retain=False)
            info.wait_for_publish(timeout)
        except (TransportError, RuntimeError, ValueError) as exc:
            console.print(f"[bold red]Publish failed:[/bold red] {exc}")
            raise typer.Exit(code=1)

    console.print(f"[green]Rebirth command sent -> {topic}[/green]")
