"""actionsync - chunked project synchronization with an Actions configuration service."""

__version__ = "0.1.0"
