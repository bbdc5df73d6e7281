"""Route chat replies into tmux sessions that are waiting for input."""

__version__ = "0.1.0"
