"""Rich terminal renderer for the spmon live monitor.

Turns ``MonitorView`` into Rich renderables: a header with connection state,
the message list on the left, the detail pane on the right and a help or
status line at the bottom.

Colour scheme (see ``Theme``)
-----------------------------
- teal      : thin-edge.io (te/...) messages, connected state, true booleans
- orange    : Sparkplug B (spBv1.0/...) messages and metric names
- lavender  : everything else
- red       : decode errors
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from rich.console import Console, Group, RenderableType
from rich.layout import Layout
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from spmon.models.messages import MessageCategory
from spmon.monitor.projection import DetailSnapshot, ListRow, MonitorView, format_size

HELP_TEXT = (
    "  ↑/↓ select    PgUp/PgDn detail    g/G top/bottom    "
    "c clear    R rebirth    q quit"
)


class Theme(BaseModel):
    """Immutable style table injected into the renderer."""

    model_config = ConfigDict(frozen=True)

    tedge: str = "#00d7af"
    sparkplug: str = "#ff8700"
    other: str = "#8787d7"
    border: str = "#444444"
    dim: str = "#666666"
    header: str = "bold #aaaaaa"
    selected: str = "bold #ffffff on #005f87"
    error: str = "#ff5f5f"

    def for_category(self, category: MessageCategory) -> str:
        if category == MessageCategory.TEDGE:
            return self.tedge
        if category == MessageCategory.SPARKPLUG:
            return self.sparkplug
        return self.other


_CATEGORY_ICONS: dict[MessageCategory, str] = {
    MessageCategory.TEDGE: "●",
    MessageCategory.SPARKPLUG: "◆",
    MessageCategory.OTHER: "◉",
}

DEFAULT_THEME = Theme()


def truncate(s: str, limit: int) -> str:
    if limit <= 3 or len(s) <= limit:
        return s
    return s[: limit - 1] + "…"


class MonitorRenderer:
    """Renders ``MonitorView`` snapshots as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    theme:
        Style table; defaults to ``DEFAULT_THEME``.
    """

    def __init__(self, console: Console | None = None, theme: Theme = DEFAULT_THEME) -> None:
        self.console = console or Console()
        self.theme = theme

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def list_height(self) -> int:
        """Rows available to the message list for the current console."""
        return max(1, self.console.size.height - 5)

    def pane_widths(self) -> tuple[int, int]:
        width = self.console.size.width
        list_w = max(20, width * 36 // 100)
        detail_w = max(20, width - list_w - 3)
        return list_w, detail_w

    # ------------------------------------------------------------------
    # Full screen
    # ------------------------------------------------------------------

    def render(self, view: MonitorView) -> Layout:
        list_w, detail_w = self.pane_widths()
        layout = Layout()
        layout.split_column(
            Layout(self._header(view), name="header", size=1),
            Layout(name="body"),
            Layout(self._footer(view), name="footer", size=1),
        )
        layout["body"].split_row(
            Layout(self._list_pane(view, list_w), name="list", size=list_w + 2),
            Layout(self._detail_pane(view, detail_w), name="detail"),
        )
        return layout

    def _header(self, view: MonitorView) -> Text:
        text = Text("spmon  ", style=self.theme.header)
        if view.connected:
            text.append("● Connected  ", style=self.theme.tedge)
            text.append(view.broker, style=self.theme.dim)
        else:
            text.append("○ Connecting…", style=self.theme.dim)
        if view.message_count:
            text.append(f"  {view.message_count} msgs", style=self.theme.dim)
        return text

    def _footer(self, view: MonitorView) -> Text:
        if view.status:
            return Text("  " + view.status, style=self.theme.tedge)
        return Text(HELP_TEXT, style=self.theme.dim)

    # ------------------------------------------------------------------
    # Message list
    # ------------------------------------------------------------------

    def _list_row(self, row: ListRow, width: int) -> Text:
        topic_w = max(4, width - 23)
        topic = truncate(row.topic, topic_w).ljust(topic_w)
        icon = _CATEGORY_ICONS[row.category]
        ts = row.received_at.strftime("%H:%M:%S.%f")[:-3]
        size = format_size(row.size)
        if row.selected:
            return Text(f"{icon} {ts} {topic} {size}".ljust(width), style=self.theme.selected)
        style = self.theme.for_category(row.category)
        text = Text()
        text.append(icon, style=style)
        text.append(f" {ts} ", style=self.theme.dim)
        text.append(topic, style=style)
        text.append(f" {size}", style=self.theme.dim)
        return text

    def _list_pane(self, view: MonitorView, width: int) -> Panel:
        title = Text("Messages", style=self.theme.header)
        if view.follow:
            title.append(" [follow]", style=self.theme.dim)
        lines = [self._list_row(row, width) for row in view.rows]
        return Panel(
            Group(*lines),
            title=title,
            title_align="left",
            border_style=self.theme.border,
        )

    # ------------------------------------------------------------------
    # Detail pane
    # ------------------------------------------------------------------

    def _detail_pane(self, view: MonitorView, width: int) -> Panel:
        if view.detail is None:
            body: RenderableType = Text("  No messages yet.", style=self.theme.dim)
        else:
            body = self.render_detail(view.detail, width=width, offset=view.detail_offset)
        return Panel(
            body,
            title=Text("Detail", style=self.theme.header),
            title_align="left",
            border_style=self.theme.border,
        )

    def _meta(self, detail: DetailSnapshot, width: int) -> Table:
        meta = Table.grid(padding=(0, 2))
        meta.add_column(style=self.theme.header)
        meta.add_column()
        style = self.theme.for_category(detail.category)
        meta.add_row("Topic:", Text(truncate(detail.topic, width - 14), style=style))
        payload = detail.payload
        if detail.category == MessageCategory.SPARKPLUG and payload is not None:
            if payload.timestamp is not None:
                meta.add_row("Timestamp:", payload.timestamp.isoformat())
            meta.add_row("Seq:", str(payload.seq))
            if payload.uuid:
                meta.add_row("UUID:", payload.uuid)
        else:
            meta.add_row("Received:", detail.received_at.isoformat())
        meta.add_row("Size:", f"{detail.size} bytes")
        return meta

    def _metrics_table(self, detail: DetailSnapshot) -> RenderableType:
        if not detail.metrics:
            return Text("(no metrics)", style=self.theme.dim)
        table = Table(
            show_header=True,
            header_style=self.theme.header,
            box=None,
            pad_edge=False,
            expand=False,
        )
        table.add_column("Name", style=self.theme.sparkplug, overflow="ellipsis", max_width=48)
        table.add_column("Type", style=self.theme.dim, width=10)
        table.add_column("Value")
        for row in detail.metrics:
            if row.value_kind in ("null", "none") or row.value == "false":
                value = Text(row.value, style=self.theme.dim)
            elif row.value_kind == "bool":
                value = Text(row.value, style=self.theme.tedge)
            else:
                value = Text(row.value)
            if row.timestamp is not None:
                value.append(f"  @ {row.timestamp.strftime('%H:%M:%S.%f')[:-3]}", style=self.theme.dim)
            table.add_row(row.name, row.type_name, value)
        return table

    def render_detail(self, detail: DetailSnapshot, *, width: int = 80, offset: int = 0) -> Group:
        """Render one message's detail: fixed meta header plus scrollable body."""
        parts: list[RenderableType] = [self._meta(detail, width), Text("─" * width, style=self.theme.dim)]

        if detail.category != MessageCategory.SPARKPLUG:
            lines = detail.body.splitlines()[offset:]
            parts.append(Text("\n".join(lines)))
            return Group(*parts)

        if detail.error is not None:
            parts.append(Text(f"Decode error: {detail.error}", style=self.theme.error))
            parts.append(Text(f"Raw ({detail.size} bytes): {detail.raw_hex}", style=self.theme.dim))
        count = len(detail.metrics)
        parts.append(Text(f"Metrics ({count})", style=self.theme.header))
        if offset:
            detail = detail.model_copy(update={"metrics": detail.metrics[offset:]})
        parts.append(self._metrics_table(detail))
        return Group(*parts)

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_detail(self, detail: DetailSnapshot) -> None:
        """Print a single message detail to the console."""
        self.console.print(self.render_detail(detail, width=min(self.console.size.width, 100)))
