"""Line-oriented text editing engine with GNU ed semantics."""

__all__ = [
    "active",
    "adapters",
    "address",
    "buffer",
    "cli",
    "commands",
    "errors",
    "io",
    "runtime",
    "search",
    "session",
    "substitute",
]

__version__ = "0.1.0"
