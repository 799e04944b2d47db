"""Personal task tracker with a session-gated WhatsApp relay."""

__version__ = "1.0.0"
