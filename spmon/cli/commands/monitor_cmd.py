"""``spmon monitor`` — live view of MQTT traffic with Sparkplug B decoding.

Subscribes to the default topics (Sparkplug B, thin-edge.io measurements,
Cumulocity) plus any extras, and shows a scrollable message list with an
on-demand decoded detail pane.  ``R`` publishes a Node Control/Rebirth
command to the edge node of the selected (or nearest earlier) Sparkplug
message.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.live import Live

from spmon.bridge.transport import MqttTransport, Transport, TransportError
from spmon.config import config, configure_logging
from spmon.core.event_loop import MonitorLoop
from spmon.core.rebirth import RebirthDispatcher
from spmon.core.timeline import MessageTimeline
from spmon.core.topics import DEFAULT_TOPICS
from spmon.monitor.renderer import MonitorRenderer
from spmon.monitor.terminal import TerminalKeys

console = Console()


def split_topics(raw: str) -> list[str]:
    """Parse a comma-separated ``--topics`` value."""
    return [t.strip() for t in raw.split(",") if t.strip()]


async def _run_monitor(
    transport: Transport,
    renderer: MonitorRenderer,
    *,
    broker: str,
    group: str,
    node: str,
    refresh_hz: float,
) -> None:
    timeline = MessageTimeline(config.capacity, list_height=renderer.list_height())
    dispatcher = RebirthDispatcher(
        transport,
        group,
        node,
        status_seconds=config.rebirth_status_seconds,
    )
    with TerminalKeys() as keys, Live(
        console=renderer.console,
        screen=True,
        auto_refresh=False,
        transient=True,
    ) as live:
        loop = MonitorLoop(
            transport,
            timeline,
            dispatcher,
            keys=keys,
            broker=broker,
            refresh_hz=refresh_hz,
            message_queue_depth=config.message_queue_depth,
            connectivity_queue_depth=config.connectivity_queue_depth,
            list_height=renderer.list_height,
        )
        await loop.run(frame=lambda view: live.update(renderer.render(view), refresh=True))


def monitor_cmd(
    broker: str = typer.Option(
        None,
        "--broker",
        "-b",
        help="MQTT broker host:port (default from SPMON_BROKER or localhost:1883).",
    ),
    topics: str = typer.Option(
        "",
        "--topics",
        "-t",
        help="Comma-separated extra topics to subscribe to.",
    ),
    group: str = typer.Option(
        None,
        "--group",
        "-g",
        help="Sparkplug B Group ID used for rebirth when none can be inferred.",
    ),
    node: str = typer.Option(
        None,
        "--node",
        "-n",
        help="Sparkplug B Edge Node ID used for rebirth when none can be inferred.",
    ),
    refresh_hz: float = typer.Option(
        None,
        "--refresh",
        "-r",
        help="Redraw rate in Hz.",
    ),
) -> None:
    """Show live MQTT traffic and decode Sparkplug B payloads.

    Keys: up/down (k/j) select, g/G top/bottom, PgUp/PgDn scroll detail,
    c clear, R rebirth, q quit.
    """
    broker = broker or config.broker
    subscriptions = [*DEFAULT_TOPICS, *config.topics, *split_topics(topics)]
    configure_logging(config.log_level, config.log_file)

    try:
        transport = MqttTransport(
            broker,
            subscriptions,
            client_id_prefix=config.client_id_prefix,
            reconnect_interval_seconds=config.reconnect_interval_seconds,
        )
    except TransportError as exc:
        console.print(f"[bold red]Transport error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    renderer = MonitorRenderer(console=console)
    try:
        asyncio.run(
            _run_monitor(
                transport,
                renderer,
                broker=broker,
                group=group or config.group,
                node=node or config.node,
                refresh_hz=refresh_hz or config.refresh_hz,
            )
        )
    except KeyboardInterrupt:
        console.print("[dim]Interrupted.[/dim]")
