"""unitbridge — run engine-managed containers as systemd unit main processes."""

__version__ = "0.1.0"
