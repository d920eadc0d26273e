"""KataPass: a GTP proxy that lets the engine decide when passing is good enough."""

__version__ = "0.2.0"
