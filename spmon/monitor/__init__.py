"""spmon live monitor display — read-only projection plus Rich rendering.

Modules
-------
projection
    ``MonitorProjection`` reads the timeline and produces ``MonitorView``
    Pydantic models, decoding the selected Sparkplug payload on demand.
renderer
    ``MonitorRenderer`` turns ``MonitorView`` into Rich renderables.
terminal
    ``TerminalKeys`` — cbreak-mode keyboard input as an async key source.
"""
