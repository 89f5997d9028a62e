"""Monitor core: the live timeline and everything that mutates it.

Modules
-------
topics
    Topic classification and Sparkplug B topic parsing.
timeline
    ``MessageTimeline`` — bounded FIFO with selection and follow mode.
rebirth
    ``RebirthDispatcher`` — NCMD rebirth publish plus status timer.
channels
    Bounded channels across the transport thread boundary.
event_loop
    ``MonitorLoop`` — the single-threaded asyncio loop.
"""
